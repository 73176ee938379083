"""Database configuration and initialization."""
import logging
import uuid
from contextlib import contextmanager
from flask import current_app
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base
from lumberdesk.exceptions import PersistenceError

# Create SQLAlchemy base
Base = declarative_base()

logger = logging.getLogger(__name__)


def create_db_engine(database_uri, echo=False):
    """Create an engine; pool sizing only applies to server databases."""
    options = {'echo': echo, 'pool_pre_ping': True}
    if not database_uri.startswith('sqlite'):
        options.update(pool_size=10, max_overflow=20)
    return create_engine(database_uri, **options)


def init_db(app):
    """
    Initialize database connection for an application instance.

    The engine and session registry live in ``app.extensions['db']`` so each
    app (and each test app) owns its own connection pool.
    """
    engine = create_db_engine(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False)
    )
    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )
    app.extensions['db'] = {'engine': engine, 'session': db_session}

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()

    return engine


def create_all(app):
    """Create every table known to the models package."""
    import lumberdesk.models  # noqa: F401 - registers mappers
    Base.metadata.create_all(bind=app.extensions['db']['engine'])


def get_session():
    """Get database session for the current application."""
    return current_app.extensions['db']['session']


def new_id():
    """Generate a primary key (UUID4 string)."""
    return str(uuid.uuid4())


@contextmanager
def persistence_guard(session, message):
    """
    Run database writes, turning SQLAlchemy errors into PersistenceError.

    The session is rolled back and nothing is retried here; the caller
    decides whether to submit the save again.
    """
    try:
        yield session
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{message}: {e}")
        raise PersistenceError(f"{message}. Tente novamente.") from e


def flush_or_raise(session, message):
    """Flush pending writes (INSERT/UPDATE/DELETE) or raise PersistenceError."""
    with persistence_guard(session, message):
        session.flush()


def commit_or_raise(session, message):
    """Commit the session or raise PersistenceError."""
    with persistence_guard(session, message):
        session.commit()
