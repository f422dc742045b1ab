#!/usr/bin/env python
"""Idempotent seed script for catalog permissions & default system roles.

Usage:
    python backend/scripts/seed_rbac.py               # seed normally
    python backend/scripts/seed_rbac.py --show-roles  # print role -> permission counts (after ensuring seed)
    python backend/scripts/seed_rbac.py --dry-run     # run logic then rollback (no DB changes)
    python backend/scripts/seed_rbac.py --dry-run --show-roles
"""
from __future__ import annotations
import os, sys, argparse, textwrap

# Allow running from repo root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy import inspect  # noqa: E402
from storeadmin import create_app, get_db  # noqa: E402
from storeadmin.models.authz import Base  # noqa: E402
import storeadmin.models.audit  # noqa: E402,F401
from storeadmin.services.catalog import PermissionCatalog  # noqa: E402
from storeadmin.services.repository import SqlAlchemyRepository  # noqa: E402
from storeadmin.services.seed import seed_catalog, seed_default_roles  # noqa: E402


def ensure_schema(session):
    engine = session.get_bind()
    if not inspect(engine).has_table('permissions'):
        # Bootstrap fallback; in a real environment prefer `alembic upgrade head`
        Base.metadata.create_all(engine)


def print_role_summary(repo: SqlAlchemyRepository):
    roles = repo.list_roles()
    if not roles:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r.name) for r in roles)
    print(f"{'Role'.ljust(name_w)} | Level | Count | Sample (up to 8)")
    print('-' * (name_w + 48))
    for role in roles:
        codes = sorted(p.code for p in repo.find_permissions(role.permissions).values())
        print(f"{role.name.ljust(name_w)} | {str(role.level).rjust(5)} | {str(len(codes)).rjust(5)} | {', '.join(codes[:8])}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed RBAC catalog permissions & default roles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_rbac.py\n  dry run: seed_rbac.py --dry-run\n  show roles: seed_rbac.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        ensure_schema(session)
        repo = SqlAlchemyRepository(session)
        before_roles = {r.name for r in repo.list_roles()}
        records, created_p = seed_catalog(repo, PermissionCatalog(repo))
        roles = seed_default_roles(repo, records)
        created_r = len(set(roles) - before_roles)
        if args.show_roles:
            print_role_summary(repo)
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Permissions would create: {created_p}, Roles would create: {created_r}")
        else:
            session.commit()
            print(f"[DONE] Permissions created: {created_p}, Roles created: {created_r}")


if __name__ == '__main__':
    main()
