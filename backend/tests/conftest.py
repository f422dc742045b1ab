import os, sys, pytest
# Ensure backend (for storeadmin) and this directory (for fakes) are importable
HERE = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.dirname(HERE)
for path in (HERE, ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)
from flask_jwt_extended import create_access_token
from storeadmin import create_app, get_db
from storeadmin.models.authz import Base
import storeadmin.models.audit  # noqa: F401  register audit_logs before create_all
from storeadmin.services.catalog import PermissionCatalog
from storeadmin.services.repository import SqlAlchemyRepository
from storeadmin.services.seed import seed_all
from fakes import InMemoryRepository, FakeUserDirectory


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
    })
    yield app


@pytest.fixture(autouse=True)
def fresh_schema(app_instance):
    # Shared in-memory DB: rebuild every table so tests never see each other's rows
    session = get_db()
    session.rollback()
    session.close()
    engine = session.get_bind()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    get_db().rollback()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def headers_for(app_instance):
    def make(*perms, identity='1'):
        with app_instance.app_context():
            token = create_access_token(identity=identity, additional_claims={'perms': list(perms)})
        return {'Authorization': f'Bearer {token}'}
    return make


@pytest.fixture()
def admin_headers(headers_for):
    return headers_for('roles:manage', 'permissions:manage')


@pytest.fixture()
def seeded():
    """Catalog permissions plus default system roles in the SQL database."""
    repo = SqlAlchemyRepository(get_db())
    records, _, roles = seed_all(repo, PermissionCatalog(repo))
    return {'permissions': {r.code: r for r in records}, 'roles': roles}


@pytest.fixture()
def memory_repo():
    return InMemoryRepository()


@pytest.fixture()
def user_directory():
    return FakeUserDirectory()
