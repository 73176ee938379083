import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import sessionmaker

from config import TestConfig
from lumberdesk import create_app
from lumberdesk.database import Base
from lumberdesk.models import (
    AppUser, Client, Product, Seller, Order, OrderItem, UserRole
)
from lumberdesk.services.access import Caller


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application instance for testing (SQLite file database)."""
    db_path = tmp_path_factory.mktemp('db') / 'lumberdesk-test.db'

    class _TestConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{db_path}'

    return create_app(_TestConfig)


@pytest.fixture(scope='function')
def engine(app):
    return app.extensions['db']['engine']


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(engine):
    """
    Database session for testing.

    Separate from the request-scoped session so objects survive the
    teardown that runs after each test client request.
    """
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.rollback()
    session.close()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope='function')
def seller_joao(session):
    seller = Seller(name='Vendedor João', whatsapp='(47) 99999-0001', is_active=True)
    session.add(seller)
    session.commit()
    return seller


@pytest.fixture(scope='function')
def seller_maria(session):
    seller = Seller(name='Vendedor Maria', whatsapp='(47) 99999-0002', is_active=True)
    session.add(seller)
    session.commit()
    return seller


@pytest.fixture(scope='function')
def admin_user(session):
    user = AppUser(email='admin@test.com', name='Administrador', role=UserRole.ADMIN.value, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def sales_user(session, seller_joao):
    """Sales account acting as seller João."""
    user = AppUser(
        email='joao@test.com',
        name='João',
        role=UserRole.SALES.value,
        seller_id=seller_joao.id,
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin_caller(admin_user):
    return Caller.from_user(admin_user)


@pytest.fixture(scope='function')
def sales_caller(sales_user):
    return Caller.from_user(sales_user)


@pytest.fixture(scope='function')
def client_record(session):
    record = Client(
        name='João da Silva Construções',
        document='123.456.789-00',
        phone='(47) 99999-9999',
        address='Rua das Palmeiras, 100, Joinville - SC',
        type='PF',
    )
    session.add(record)
    session.commit()
    return record


@pytest.fixture(scope='function')
def product_deck(session):
    """Area product with a processed (beneficiado) price."""
    product = Product(
        code='DECK-01',
        name='Deck Cumaru',
        category='Decks',
        unit='m2',
        price_bruto=Decimal('100.00'),
        price_benef=Decimal('120.00'),
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def maria_order(session, seller_maria, client_record):
    """An ORDER owned by seller Maria (not visible to João)."""
    order = Order(
        client_id=client_record.id,
        client_name=client_record.name,
        seller_id=seller_maria.id,
        seller_name=seller_maria.name,
        date=datetime.now(),
        status='APPROVED',
        type='ORDER',
        subtotal=Decimal('200.00'),
        total_discount=Decimal('0.00'),
        total=Decimal('200.00'),
    )
    order.items = [
        OrderItem(position=0, description='Viga 6x12', quantity=Decimal('2'),
                  unit_price=Decimal('100.00'), unit='un', total=Decimal('200.00'))
    ]
    session.add(order)
    session.commit()
    return order


@pytest.fixture(scope='function')
def admin_client(app, admin_user):
    """Test client logged in as administrator."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = admin_user.id
    return client


@pytest.fixture(scope='function')
def sales_client(app, sales_user):
    """Test client logged in as seller João."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = sales_user.id
    return client
