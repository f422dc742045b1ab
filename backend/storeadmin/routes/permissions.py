from flask import Blueprint, request, abort, current_app
from storeadmin.decorators.auth import require_permissions
from storeadmin.decorators.audit import audit_log
from storeadmin.services.factory import permission_manager, permission_catalog, repository
from storeadmin.services.records import PermissionRecord
from storeadmin.services.selection import selection_state
from storeadmin.utils.listing import paginate, bool_arg, make_cached_list_response, handle_conditional

perms_bp = Blueprint('permissions', __name__)


def _perm_json(p: PermissionRecord, role_count=None):
    data = p.to_dict()
    if role_count is not None:
        data['role_count'] = role_count
    return data


def _perm_snapshot(kwargs):  # audit pre_fetch
    rec = repository().find_permission(kwargs.get('permission_id'))
    return _perm_json(rec) if rec else {}


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description='JSON object body required')
    return data


def _selected_arg():
    raw = request.args.get('selected')
    if not raw:
        return set()
    try:
        return {int(x) for x in raw.split(',') if x.strip()}
    except ValueError:
        abort(400, description='selected must be a comma separated list of ids')


@perms_bp.get('/permissions')
@require_permissions('permissions:read')
def list_permissions():
    rows = [
        _perm_json(p, count)
        for p, count in permission_manager().list_permissions(
            is_active=bool_arg('is_active'),
            is_system=bool_arg('is_system'),
            category=request.args.get('category'),
            resource=request.args.get('resource'),
            action=request.args.get('action'),
        )
    ]
    page, total, limit, offset = paginate(rows)
    resp, etag = make_cached_list_response(page, total, limit, offset)
    cond = handle_conditional(etag)
    if cond:
        return cond
    return resp


@perms_bp.get('/permissions/by-category')
@require_permissions('permissions:read')
def permissions_by_category():
    grouped = permission_manager().permissions_by_category(is_active=bool_arg('is_active'))
    return {'data': [{'category': name, 'permissions': [_perm_json(p) for p in group]} for name, group in grouped]}


@perms_bp.get('/permissions/catalog')
@require_permissions('permissions:read')
def permission_catalog_view():
    """Catalog categories in display order with persisted ids and the selection state of ?selected=."""
    catalog = permission_catalog()
    selected = _selected_arg()
    data = []
    for cat in catalog.list_categories():
        ids = catalog.category_permission_ids(cat.name)
        data.append({
            'name': cat.name,
            'name_i18n': cat.name_i18n,
            'entries': [{'code': e.code, 'name': e.name, 'name_i18n': e.name_i18n} for e in cat.entries],
            'permission_ids': sorted(ids),
            'state': selection_state(ids, selected)._asdict(),
        })
    return {'data': data, 'languages': current_app.config.get('RBAC_LANGUAGES', [])}


@perms_bp.get('/permissions/stats')
@require_permissions('permissions:read')
def permission_stats():
    return permission_manager().permission_stats()


@perms_bp.get('/permissions/<int:permission_id>')
@require_permissions('permissions:read')
def get_permission(permission_id: int):
    rec, count = permission_manager().get_permission(permission_id)
    return _perm_json(rec, count)


@perms_bp.post('/permissions')
@require_permissions('permissions:create')
@audit_log('PERMISSION.CREATE', entity='Permission', meta_keys=['code'])
def create_permission():
    rec = permission_manager().create_permission(_json_body())
    return _perm_json(rec, 0), 201


@perms_bp.post('/permissions/bulk')
@require_permissions('permissions:create')
@audit_log('PERMISSION.BULK_CREATE', entity='Permission', meta_keys=['created_count', 'error_count'])
def bulk_create_permissions():
    created, errors = permission_manager().bulk_create_permissions(_json_body().get('permissions'))
    return {
        'data': [_perm_json(p, 0) for p in created],
        'errors': errors,
        'created_count': len(created),
        'error_count': len(errors),
    }, 201


@perms_bp.put('/permissions/<int:permission_id>')
@require_permissions('permissions:update')
@audit_log(
    'PERMISSION.UPDATE',
    entity='Permission',
    entity_id_arg='permission_id',
    diff_keys=['name', 'resource', 'action', 'category', 'is_active'],
    pre_fetch=_perm_snapshot,
)
def update_permission(permission_id: int):
    rec = permission_manager().update_permission(permission_id, _json_body())
    return _perm_json(rec)


@perms_bp.delete('/permissions/<int:permission_id>')
@require_permissions('permissions:delete')
@audit_log('PERMISSION.DELETE', entity='Permission', entity_id_arg='permission_id')
def delete_permission(permission_id: int):
    permission_manager().delete_permission(permission_id)
    current_app.logger.info('Permission %s deleted', permission_id)
    return {'status': 'deleted', 'id': permission_id}
