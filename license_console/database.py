"""Engine, declarative base and the request-scoped session."""
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()

engine = None
db_session = None


def _engine_options(app, database_uri):
    options = {'echo': app.config.get('SQLALCHEMY_ECHO', False)}
    if database_uri.startswith('sqlite'):
        # sqlite:///:memory: lives only as long as its one connection
        options.update(connect_args={'check_same_thread': False}, poolclass=StaticPool)
    else:
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return options


def init_db(app):
    """Bind the module-level engine and session to the app's database URI."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(database_uri, **_engine_options(app, database_uri))
    db_session = scoped_session(sessionmaker(autoflush=False, bind=engine))

    @app.teardown_appcontext
    def release_session(exception=None):
        if exception is not None:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models package."""
    import license_console.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_all():
    Base.metadata.drop_all(bind=engine)


def get_session():
    return db_session
