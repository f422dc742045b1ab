import pytest

from storeadmin.constants.permissions import ACTIONS, CATEGORY_NAMES, RESOURCES
from storeadmin.services.catalog import CATEGORIES, PermissionCatalog
from storeadmin.services.errors import NotFoundError
from storeadmin.services.seed import seed_all


@pytest.fixture()
def catalog(memory_repo):
    return PermissionCatalog(memory_repo)


def test_categories_keep_display_order(catalog):
    names = catalog.category_names()
    assert names[:7] == [
        'User Management', 'Role & Permission Management', 'Product Management', 'Order Management',
        'Reports & Analytics', 'System Settings', 'API & Integration',
    ]
    assert names == CATEGORY_NAMES
    assert [e.code for e in catalog.get_category('User Management').entries] == [
        'users:create', 'users:read', 'users:update', 'users:delete', 'users:manage',
    ]


def test_entries_use_known_vocabulary_and_are_unique():
    codes = [e.code for c in CATEGORIES for e in c.entries]
    assert len(codes) == len(set(codes))
    for cat in CATEGORIES:
        for entry in cat.entries:
            assert entry.resource in RESOURCES
            assert entry.action in ACTIONS
            assert entry.name_i18n['en'] == entry.name


def test_entry_names_are_readable(catalog):
    _, entry = catalog.find_entry('products', 'read')
    assert entry.name == 'View Products'
    assert catalog.find_entry('products', 'fly') is None


def test_unknown_category(catalog):
    assert catalog.has_category('Fleet') is False
    with pytest.raises(NotFoundError):
        catalog.get_category('Fleet')
    with pytest.raises(NotFoundError):
        catalog.category_permission_ids('Fleet')


def test_resolve_permission_only_inside_catalog(catalog, memory_repo):
    assert catalog.resolve_permission('products', 'read') is None
    rec = memory_repo.add_permission('products', 'read')
    memory_repo.add_permission('widgets', 'read')
    assert catalog.resolve_permission('products', 'read') == rec
    assert catalog.resolve_permission('widgets', 'read') is None


def test_category_permission_ids(catalog, memory_repo):
    a = memory_repo.add_permission('products', 'read')
    b = memory_repo.add_permission('categories', 'read')
    memory_repo.add_permission('orders', 'read', category='Order Management')
    assert catalog.category_permission_ids('Product Management') == {a.id, b.id}
    assert catalog.category_permission_ids('User Management') == frozenset()


def test_seed_is_idempotent(catalog, memory_repo):
    records, created, roles = seed_all(memory_repo, catalog)
    total = sum(len(c.entries) for c in CATEGORIES)
    assert created == total == len(records)
    assert all(r.is_system and r.is_active for r in records)
    again, created_again, roles_again = seed_all(memory_repo, catalog)
    assert created_again == 0
    assert [r.id for r in again] == [r.id for r in records]
    assert {k: r.id for k, r in roles_again.items()} == {k: r.id for k, r in roles.items()}


def test_default_roles(catalog, memory_repo):
    records, _, roles = seed_all(memory_repo, catalog)
    by_id = {r.id: r for r in records}
    assert list(roles) == ['Super Admin', 'Admin', 'Manager', 'Editor', 'Viewer', 'Customer']
    assert all(r.is_system for r in roles.values())
    assert roles['Super Admin'].permissions == set(by_id)
    admin_codes = {by_id[i].code for i in roles['Admin'].permissions}
    assert 'roles:delete' not in admin_codes and 'permissions:delete' not in admin_codes
    assert len(admin_codes) == len(records) - 2
    assert {by_id[i].category for i in roles['Editor'].permissions} == {'Product Management'}
    assert {by_id[i].action for i in roles['Viewer'].permissions} == {'read'}
    assert len(roles['Viewer'].permissions) == len(RESOURCES)
    assert roles['Customer'].permissions == frozenset()
