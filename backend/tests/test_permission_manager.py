import pytest

from storeadmin.services.catalog import PermissionCatalog
from storeadmin.services.errors import ConflictError, NotFoundError, ValidationError
from storeadmin.services.permissions import PermissionManager
from storeadmin.services.records import RoleAggregate


@pytest.fixture()
def manager(memory_repo):
    return PermissionManager(memory_repo, PermissionCatalog(memory_repo))


def _payload(**kw):
    data = {'resource': 'products', 'action': 'read', 'name': 'View Products', 'category': 'Product Management'}
    data.update(kw)
    return data


def test_create_permission_normalizes_and_is_never_system(manager):
    rec = manager.create_permission(_payload(resource=' Products ', action='READ', is_system=True))
    assert (rec.resource, rec.action, rec.code) == ('products', 'read', 'products:read')
    assert rec.is_system is False
    assert rec.is_active is True


def test_create_permission_reports_all_bad_fields(manager, memory_repo):
    with pytest.raises(ValidationError) as exc:
        manager.create_permission({'resource': 'spaceships', 'action': 'fly', 'category': 'Fleet'})
    assert set(exc.value.fields) == {'resource', 'action', 'category', 'name'}
    assert memory_repo.permissions == {}


def test_create_duplicate_key_conflicts(manager):
    manager.create_permission(_payload())
    with pytest.raises(ConflictError):
        manager.create_permission(_payload(name='Read products again'))


def test_update_permission_changes_key_and_texts(manager):
    rec = manager.create_permission(_payload())
    updated = manager.update_permission(rec.id, {'action': 'export', 'name_i18n': {'ja': '商品エクスポート'}})
    assert updated.code == 'products:export'
    assert updated.name_i18n == {'ja': '商品エクスポート'}
    assert manager.get_permission(rec.id)[0].action == 'export'


def test_update_permission_key_collision(manager):
    manager.create_permission(_payload())
    other = manager.create_permission(_payload(action='export', name='Export Products'))
    with pytest.raises(ConflictError):
        manager.update_permission(other.id, {'action': 'read'})


def test_system_permission_rules(manager, memory_repo):
    rec = memory_repo.add_permission('orders', 'read', category='Order Management', is_system=True)
    with pytest.raises(ConflictError):
        manager.update_permission(rec.id, {'action': 'export'})
    with pytest.raises(ConflictError):
        manager.update_permission(rec.id, {'is_system': False})
    with pytest.raises(ConflictError):
        manager.delete_permission(rec.id)
    assert manager.update_permission(rec.id, {'is_active': False, 'name': 'See Orders'}).name == 'See Orders'


def test_permission_cannot_be_promoted_to_system(manager):
    rec = manager.create_permission(_payload())
    with pytest.raises(ConflictError):
        manager.update_permission(rec.id, {'is_system': True})


def test_delete_referenced_permission_conflicts(manager, memory_repo):
    rec = manager.create_permission(_payload())
    memory_repo.insert_role(RoleAggregate(name='Editor', level=70, permissions=frozenset({rec.id})))
    with pytest.raises(ConflictError) as exc:
        manager.delete_permission(rec.id)
    assert 'used by 1 roles' in str(exc.value)
    assert manager.get_permission(rec.id) == (rec, 1)


def test_delete_unreferenced_permission(manager):
    rec = manager.create_permission(_payload())
    manager.delete_permission(rec.id)
    with pytest.raises(NotFoundError):
        manager.get_permission(rec.id)
    with pytest.raises(NotFoundError):
        manager.delete_permission(rec.id)


def test_bulk_create_reports_per_item_errors(manager):
    created, errors = manager.bulk_create_permissions([
        _payload(),
        _payload(),
        _payload(resource='nope'),
        'not an object',
        _payload(action='export', name='Export Products'),
    ])
    assert [r.code for r in created] == ['products:read', 'products:export']
    assert len(errors) == 3
    assert errors[0].startswith('Permission 2: ')
    assert errors[1].startswith('Permission 3: ')
    assert errors[2] == 'Permission 4: expected an object'


@pytest.mark.parametrize('items', [[], None, 'products:read', {'resource': 'products'}])
def test_bulk_create_requires_a_list(manager, items):
    with pytest.raises(ValidationError) as exc:
        manager.bulk_create_permissions(items)
    assert exc.value.fields == ['permissions']


def test_list_and_group_permissions(manager, memory_repo):
    memory_repo.add_permission('orders', 'read', category='Order Management')
    memory_repo.add_permission('products', 'read')
    memory_repo.add_permission('widgets', 'read', category='Custom Stuff')
    memory_repo.add_permission('users', 'read', category='User Management', is_active=False)
    groups = manager.permissions_by_category()
    assert [name for name, _ in groups] == ['User Management', 'Product Management', 'Order Management', 'Custom Stuff']
    active_groups = manager.permissions_by_category(is_active=True)
    assert 'User Management' not in [name for name, _ in active_groups]
    rows = manager.list_permissions(category='Order Management')
    assert [(r.code, count) for r, count in rows] == [('orders:read', 0)]


def test_permission_stats(manager, memory_repo):
    memory_repo.add_permission('products', 'read', is_system=True)
    memory_repo.add_permission('products', 'update')
    memory_repo.add_permission('orders', 'read', category='Order Management', is_active=False)
    stats = manager.permission_stats()
    assert (stats['total'], stats['active'], stats['system'], stats['user_created']) == (3, 2, 1, 2)
    assert stats['category_distribution'][0] == {'category': 'Product Management', 'count': 2, 'active': 2}
    assert stats['resource_distribution'][0] == {'resource': 'products', 'count': 2, 'actions': ['read', 'update']}


@pytest.mark.parametrize('body', [['products', 'read'], 'products:read', None])
def test_non_object_input_is_a_validation_error(manager, body):
    with pytest.raises(ValidationError) as exc:
        manager.create_permission(body)
    assert exc.value.fields == ['body']
    rec = manager.create_permission(_payload())
    with pytest.raises(ValidationError) as exc:
        manager.update_permission(rec.id, body)
    assert exc.value.fields == ['body']
