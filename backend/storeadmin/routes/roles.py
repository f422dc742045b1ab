from flask import Blueprint, request, abort, current_app, make_response
from storeadmin.decorators.auth import require_permissions
from storeadmin.decorators.audit import audit_log
from storeadmin.services.factory import role_manager, permission_catalog, repository
from storeadmin.services.records import RoleAggregate
from storeadmin.services.selection import selection_state, toggle_category
from storeadmin.utils.listing import (
    paginate, bool_arg, int_arg, make_cached_list_response, handle_conditional, if_match_version,
)

roles_bp = Blueprint('roles', __name__)


def _role_json(role: RoleAggregate):
    return role.to_dict()


def _role_detail_json(role: RoleAggregate):
    data = _role_json(role)
    catalog = permission_catalog()
    records = repository().find_permissions(role.permissions).values()
    data['permission_details'] = [
        {'id': p.id, 'code': p.code, 'name': p.name, 'category': p.category}
        for _, group in catalog.grouped(records)
        for p in group
    ]
    return data


def _role_snapshot(kwargs):  # audit pre_fetch: role state before an update
    role = repository().find_role(kwargs.get('role_id'))
    return _role_json(role) if role else {}


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description='JSON object body required')
    return data


@roles_bp.get('/roles')
@require_permissions('roles:read')
def list_roles():
    roles = role_manager().list_roles(
        is_active=bool_arg('is_active'),
        is_system=bool_arg('is_system'),
        level=int_arg('level'),
    )
    rows, total, limit, offset = paginate([_role_json(r) for r in roles])
    resp, etag = make_cached_list_response(rows, total, limit, offset)
    cond = handle_conditional(etag)
    if cond:
        return cond
    return resp


@roles_bp.get('/roles/stats')
@require_permissions('roles:read')
def role_stats():
    return role_manager().role_stats()


@roles_bp.get('/roles/<int:role_id>')
@require_permissions('roles:read')
def get_role(role_id: int):
    role = role_manager().get_role(role_id)
    resp = make_response(_role_detail_json(role))
    resp.headers['ETag'] = str(role.version)
    return resp


@roles_bp.post('/roles')
@require_permissions('roles:create')
@audit_log('ROLE.CREATE', entity='Role', meta_keys=['name', 'level', 'permissions'])
def create_role():
    role = role_manager().create_role(_json_body())
    return _role_json(role), 201


@roles_bp.put('/roles/<int:role_id>')
@require_permissions('roles:update')
@audit_log(
    'ROLE.UPDATE',
    entity='Role',
    entity_id_arg='role_id',
    diff_keys=['name', 'level', 'is_active', 'permissions', 'name_i18n', 'description_i18n'],
    pre_fetch=_role_snapshot,
)
def update_role(role_id: int):
    role = role_manager().update_role(role_id, _json_body(), expected_version=if_match_version())
    resp = make_response(_role_json(role))
    resp.headers['ETag'] = str(role.version)
    return resp


@roles_bp.delete('/roles/<int:role_id>')
@require_permissions('roles:delete')
@audit_log('ROLE.DELETE', entity='Role', entity_id_arg='role_id')
def delete_role(role_id: int):
    role_manager().delete_role(role_id)
    current_app.logger.info('Role %s deleted', role_id)
    return {'status': 'deleted', 'id': role_id}


@roles_bp.post('/roles/<int:role_id>/clone')
@require_permissions('roles:create')
@audit_log('ROLE.CLONE', entity='Role', meta_keys=['name', 'level'])
def clone_role(role_id: int):
    clone = role_manager().clone_role(role_id, _json_body())
    data = _role_json(clone)
    data['source_id'] = role_id
    return data, 201


@roles_bp.post('/roles/selection/toggle')
@require_permissions('roles:read')
def toggle_selection():
    """Apply the category "select all / deselect all" button to a client-side selection."""
    data = _json_body()
    category = data.get('category')
    selected = data.get('selected_ids') or []
    if not isinstance(category, str) or not category:
        abort(400, description='category required')
    if not isinstance(selected, list) or any(isinstance(i, bool) or not isinstance(i, int) for i in selected):
        abort(400, description='selected_ids must be a list of integer ids')
    category_ids = permission_catalog().category_permission_ids(category)
    new_selected = toggle_category(category_ids, set(selected))
    state = selection_state(category_ids, new_selected)
    return {
        'category': category,
        'selected_ids': sorted(new_selected),
        'state': state._asdict(),
    }
