"""PDF rendering for quotes and orders."""

from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from xml.sax.saxutils import escape

from lumberdesk.models import UNIT_LABELS
from lumberdesk.utils.formatters import money_br, num_br, date_br, datetime_br

BRAND_COLOR = colors.HexColor('#7B1E23')
GRAY_COLOR = colors.HexColor('#6B7280')
NOT_INFORMED = 'Não informado'


def order_filename(order) -> str:
    """e.g. ORCAMENTO_A1B2C3.pdf"""
    prefix = 'ORCAMENTO' if order.is_quote else 'PEDIDO'
    return f"{prefix}_{order.short_id}.pdf"


def render_order_pdf(order, client=None, company: Optional[Dict[str, Any]] = None) -> BytesIO:
    """
    Render a quote/order as an A4 PDF.

    Args:
        order: Order with its items loaded
        client: Client row for document/phone/address (optional, may be deleted)
        company: Company header info (name, cnpj, address, email, phone_display)

    Returns:
        BytesIO positioned at the start of the PDF
    """
    company = company or {}
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.5*inch,
        leftMargin=0.5*inch,
        topMargin=0.5*inch,
        bottomMargin=0.6*inch,
        title=f"{order.type_label} #{order.short_id}",
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'DocTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=BRAND_COLOR,
        spaceAfter=6,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    header_style = ParagraphStyle(
        'CompanyHeader',
        parent=styles['Normal'],
        fontSize=9,
        textColor=GRAY_COLOR,
        alignment=TA_CENTER,
        spaceAfter=4
    )
    section_style = ParagraphStyle(
        'Section',
        parent=styles['Heading3'],
        fontSize=11,
        textColor=colors.black,
        spaceBefore=6,
        spaceAfter=4,
    )
    cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=8, leading=10)
    notes_style = ParagraphStyle('Notes', parent=styles['Normal'], fontSize=9)

    # 1. Company header
    if company.get('name'):
        elements.append(Paragraph(f"<b>{escape(company['name'])}</b>", title_style))

    contact_parts = []
    if company.get('cnpj'):
        contact_parts.append(f"CNPJ: {company['cnpj']}")
    if company.get('phone_display'):
        contact_parts.append(f"WhatsApp: {company['phone_display']}")
    if company.get('address'):
        contact_parts.append(company['address'])
    if contact_parts:
        elements.append(Paragraph(escape("  |  ".join(contact_parts)), header_style))
    if company.get('email'):
        elements.append(Paragraph(escape(company['email']), header_style))

    elements.append(Spacer(1, 0.2*inch))

    # 2. Document metadata
    doc_info = [
        [f"{order.type_label.upper()} #{order.short_id}", f"Data: {date_br(order.date)}"],
        [f"Status: {order.status_label}", f"Vendedor: {order.seller_name}" if order.seller_name else ''],
    ]
    doc_info_table = Table(doc_info, colWidths=[3.7*inch, 3.5*inch])
    doc_info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'LEFT'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (0, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (0, 0), 13),
        ('FONTSIZE', (0, 1), (-1, -1), 9),
        ('FONTSIZE', (1, 0), (1, 0), 9),
        ('TEXTCOLOR', (0, 0), (0, 0), BRAND_COLOR),
        ('TEXTCOLOR', (1, 0), (-1, -1), GRAY_COLOR),
    ]))
    elements.append(doc_info_table)
    elements.append(Spacer(1, 0.15*inch))

    # 3. Client data
    elements.append(Paragraph("DADOS DO CLIENTE", section_style))
    client_data = [
        ['Nome:', order.client_name or NOT_INFORMED],
        ['CPF/CNPJ:', (client.document if client else None) or NOT_INFORMED],
        ['WhatsApp:', (client.phone if client else None) or NOT_INFORMED],
        ['Endereço:', Paragraph(escape((client.address if client else None) or NOT_INFORMED), cell_style)],
    ]
    client_table = Table(client_data, colWidths=[1*inch, 6.2*inch])
    client_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LINEABOVE', (0, 0), (-1, 0), 0.3, colors.HexColor('#C8C8C8')),
    ]))
    elements.append(client_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Items table
    table_data = [['Descrição', 'Qtd', 'Comp.', 'Larg.', 'Benef.', 'Un', 'Vl. Unit.', 'Total']]
    for item in order.items:
        table_data.append([
            Paragraph(escape(item.description or ''), cell_style),
            num_br(item.quantity),
            num_br(item.length) if item.length else '-',
            num_br(item.width) if item.width else '-',
            'Benef.' if item.is_processed else '-',
            UNIT_LABELS.get(item.unit, item.unit or 'un'),
            money_br(item.unit_price),
            money_br(item.total),
        ])

    items_table = Table(
        table_data,
        colWidths=[2.4*inch, 0.5*inch, 0.55*inch, 0.55*inch, 0.55*inch, 0.45*inch, 1*inch, 1.2*inch],
        repeatRows=1
    )
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('ALIGN', (1, 1), (5, -1), 'CENTER'),
        ('ALIGN', (6, 1), (7, -1), 'RIGHT'),
        ('FONTNAME', (7, 1), (7, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.4, colors.HexColor('#D1D5DB')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F3F4F6')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 5. Totals
    totals_table = Table([
        ['Subtotal:', money_br(order.subtotal)],
        ['Descontos:', money_br(order.total_discount)],
        ['Total Final:', money_br(order.total)],
    ], colWidths=[5.7*inch, 1.5*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, 1), 10),
        ('TEXTCOLOR', (0, 0), (-1, 1), GRAY_COLOR),
        ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 2), (-1, 2), 14),
        ('TEXTCOLOR', (0, 2), (-1, 2), BRAND_COLOR),
        ('TOPPADDING', (0, 2), (-1, 2), 8),
    ]))
    elements.append(totals_table)

    # 6. Customer notes (internal notes never reach the PDF)
    if order.customer_notes:
        elements.append(Spacer(1, 0.25*inch))
        elements.append(Paragraph("OBSERVAÇÕES:", section_style))
        notes = escape(order.customer_notes).replace('\n', '<br/>')
        elements.append(Paragraph(notes, notes_style))

    footer_left = f"Documento gerado em: {datetime_br(datetime.now())}"
    footer_right = company.get('name') or ''

    def draw_footer(canvas, document):
        canvas.saveState()
        canvas.setFont('Helvetica', 7)
        canvas.setFillColor(colors.HexColor('#969696'))
        canvas.drawString(document.leftMargin, 0.35*inch, footer_left)
        canvas.drawRightString(A4[0] - document.rightMargin, 0.35*inch, footer_right)
        canvas.restoreState()

    doc.build(elements, onFirstPage=draw_footer, onLaterPages=draw_footer)
    buffer.seek(0)
    return buffer
