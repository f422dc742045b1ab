"""Central definitions of the permission catalog: resource/action vocabularies and
the ordered permission categories shown in the admin console.
Extend cautiously; never rename a resource or action silently. Add the new entry and
retire the old one through a migration.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

RESOURCES = [
    'users', 'roles', 'permissions', 'products', 'categories', 'orders',
    'reports', 'analytics', 'settings', 'notifications', 'api', 'integrations',
    'inventory', 'shipping', 'payments', 'promotions', 'reviews',
]

ACTIONS = [
    'create', 'read', 'update', 'delete', 'manage', 'approve', 'reject',
    'export', 'import', 'publish', 'unpublish', 'archive', 'restore',
]

LANGUAGES = ['en', 'vi', 'ja']

# Display names per action, used to derive entry names ("View Products", "Manage Orders")
_ACTION_LABELS = {
    'create': ('Create', '作成'),
    'read': ('View', '表示'),
    'update': ('Update', '更新'),
    'delete': ('Delete', '削除'),
    'manage': ('Manage', '管理'),
    'approve': ('Approve', '承認'),
    'reject': ('Reject', '却下'),
    'export': ('Export', 'エクスポート'),
    'import': ('Import', 'インポート'),
    'publish': ('Publish', '公開'),
    'unpublish': ('Unpublish', '非公開'),
    'archive': ('Archive', 'アーカイブ'),
    'restore': ('Restore', '復元'),
}

_RESOURCE_LABELS = {
    'users': ('Users', 'ユーザー'),
    'roles': ('Roles', 'ロール'),
    'permissions': ('Permissions', '権限'),
    'products': ('Products', '商品'),
    'categories': ('Categories', 'カテゴリ'),
    'orders': ('Orders', '注文'),
    'reports': ('Reports', 'レポート'),
    'analytics': ('Analytics', '分析'),
    'settings': ('Settings', '設定'),
    'notifications': ('Notifications', '通知'),
    'api': ('API', 'API'),
    'integrations': ('Integrations', '統合'),
    'inventory': ('Inventory', '在庫'),
    'shipping': ('Shipping', '配送'),
    'payments': ('Payments', '支払い'),
    'promotions': ('Promotions', 'プロモーション'),
    'reviews': ('Reviews', 'レビュー'),
}

CRUDM = ('create', 'read', 'update', 'delete', 'manage')

# (category name, japanese name, [(resource, actions), ...]) in display order
CATEGORY_LAYOUT: List[Tuple[str, str, List[Tuple[str, Tuple[str, ...]]]]] = [
    ('User Management', 'ユーザー管理', [('users', CRUDM)]),
    ('Role & Permission Management', 'ロール・権限管理', [('roles', CRUDM), ('permissions', CRUDM)]),
    ('Product Management', '商品管理', [
        ('products', CRUDM + ('export', 'import', 'publish', 'unpublish')),
        ('categories', CRUDM),
    ]),
    ('Order Management', '注文管理', [('orders', CRUDM + ('export', 'approve', 'reject'))]),
    ('Reports & Analytics', 'レポート・分析', [
        ('reports', ('read', 'create', 'manage', 'export')),
        ('analytics', ('read', 'manage')),
    ]),
    ('System Settings', 'システム設定', [
        ('settings', ('read', 'update', 'manage')),
        ('notifications', ('read', 'manage')),
    ]),
    ('API & Integration', 'API・統合', [
        ('api', ('read', 'manage')),
        ('integrations', ('read', 'manage')),
    ]),
    ('Inventory Management', '在庫管理', [('inventory', ('read', 'update', 'manage'))]),
    ('Shipping Management', '配送管理', [('shipping', ('read', 'update', 'manage'))]),
    ('Payment Management', '支払い管理', [('payments', ('read', 'update', 'manage', 'export'))]),
    ('Promotion Management', 'プロモーション管理', [('promotions', CRUDM + ('publish', 'unpublish', 'archive', 'restore'))]),
    ('Review Management', 'レビュー管理', [('reviews', ('read', 'approve', 'reject', 'delete', 'manage'))]),
]

CATEGORY_NAMES = [name for name, _, _ in CATEGORY_LAYOUT]


def entry_names(resource: str, action: str) -> Dict[str, str]:
    verb_en, verb_ja = _ACTION_LABELS[action]
    noun_en, noun_ja = _RESOURCE_LABELS[resource]
    return {'en': f"{verb_en} {noun_en}", 'ja': f"{noun_ja}{verb_ja}"}


# Default system roles: name -> (level, japanese name, description, selector)
# Selector forms: '*' every permission; ('exclude', codes); ('categories', names); ('actions', actions)
DEFAULT_ROLES = {
    'Super Admin': (100, 'スーパー管理者', 'Full system access with all permissions', '*'),
    'Admin': (90, '管理者', 'Administrative access to most system features',
              ('exclude', ['roles:delete', 'permissions:delete'])),
    'Manager': (80, 'マネージャー', 'Management access to products, orders, and users',
                ('categories', ['Product Management', 'Order Management', 'User Management',
                                'Inventory Management', 'Reports & Analytics'])),
    'Editor': (70, '編集者', 'Can create and edit products and categories',
               ('categories', ['Product Management'])),
    'Viewer': (60, '閲覧者', 'Read-only access to system data', ('actions', ['read'])),
    'Customer': (10, '顧客', 'Standard customer access', ('categories', [])),
}
