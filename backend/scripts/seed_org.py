#!/usr/bin/env python
"""Idempotent seed script for the role table, an initial super admin and (optionally) a sample hierarchy.

Usage:
    python backend/scripts/seed_org.py                  # roles + super admin
    python backend/scripts/seed_org.py --sample         # also load seeds/org_sample.py
    python backend/scripts/seed_org.py --show-roles     # print the role catalog after seeding
    python backend/scripts/seed_org.py --dry-run        # run logic then rollback (no DB changes)
    python backend/scripts/seed_org.py --print-token    # print an access token for the super admin
"""
from __future__ import annotations
import os, sys, argparse, textwrap, logging
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from dealernet import create_app, get_db  # type: ignore
from dealernet.constants.roles import ROLE_RULES, SUPER_ADMIN, RoleCatalog
from dealernet.models.authz import Base, Role, User
from dealernet.models.org import Region, Area, Territory, Dealer
from dealernet.services.policy import token_claims

log = logging.getLogger('seed_org')


def ensure_roles(session):
    existing = {r.name for r in session.execute(select(Role)).scalars().all()}
    created = 0
    for name in ROLE_RULES:
        if name not in existing:
            session.add(Role(name=name, is_system=True))
            created += 1
    session.flush()
    return created


def ensure_initial_admin(session):
    role = session.execute(select(Role).where(Role.name == SUPER_ADMIN)).scalar_one_or_none()
    if not role:
        log.warning('%s role missing; skipping admin user creation', SUPER_ADMIN)
        return None
    email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user:
        user = User(username=os.getenv('SEED_ADMIN_USERNAME', 'admin'), email=email, password_hash='', role_id=role.id)
        user.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
        session.add(user)
        session.flush()
        print(f"[INFO] Created initial super admin {email} with temporary password.")
    return user


def _get_or_add(session, model, defaults=None, **lookup):
    obj = session.execute(select(model).filter_by(**lookup)).scalar_one_or_none()
    if obj is None:
        obj = model(**lookup, **(defaults or {}))
        session.add(obj)
        session.flush()
        return obj, True
    return obj, False


def load_sample(session):
    """Load seeds/org_sample.py; returns count of rows created."""
    from seeds import org_sample
    created = 0
    territories = {}
    anchors = {}
    for region_name, areas in org_sample.HIERARCHY.items():
        region, new = _get_or_add(session, Region, name=region_name)
        created += new
        anchors[region_name] = {'region_id': region.id}
        for area_name, territory_names in areas.items():
            area, new = _get_or_add(session, Area, name=area_name, region_id=region.id)
            created += new
            anchors[area_name] = {'region_id': region.id, 'area_id': area.id}
            for territory_name in territory_names:
                territory, new = _get_or_add(session, Territory, name=territory_name, area_id=area.id)
                created += new
                territories[territory_name] = territory
                anchors[territory_name] = {'region_id': region.id, 'area_id': area.id, 'territory_id': territory.id}
    for code, business_name, territory_name in org_sample.DEALERS:
        scope = anchors[territory_name]
        _, new = _get_or_add(session, Dealer, defaults=dict(business_name=business_name, **scope), dealer_code=code)
        created += new
    roles = {r.name: r for r in session.execute(select(Role)).scalars()}
    users = {}
    for username, role_name, anchor, manager_name in org_sample.USERS:
        user = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if user is None:
            user = User(username=username, email=f'{username}@example.com', password_hash='',
                        role_id=roles[role_name].id, **anchors[anchor])
            user.set_password(org_sample.SAMPLE_PASSWORD)
            if manager_name:
                user.manager_id = users[manager_name].id
            session.add(user)
            session.flush()
            created += 1
        users[username] = user
    return created


def print_role_catalog(session):
    catalog = RoleCatalog.from_roles(session.execute(select(Role).order_by(Role.id)).scalars())
    rows = [(d.name, ','.join(d.ordered_scopes()) or '-', ','.join(d.eligible_manager_roles) or '-',
             'yes' if d.manager_required else 'no') for d in catalog]
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Scopes | Managers | Manager required")
    print('-' * (name_w + 60))
    for name, scopes, managers, required in rows:
        print(f"{name.ljust(name_w)} | {scopes} | {managers} | {required}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed roles, super admin and sample dealer hierarchy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_org.py\n  with sample data: seed_org.py --sample\n  dry run: seed_org.py --dry-run\n""")
    )
    p.add_argument('--sample', action='store_true', help='Load the sample region/area/territory/dealer hierarchy')
    p.add_argument('--show-roles', action='store_true', help='Print the role catalog after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--print-token', action='store_true', help='Print a bearer token for the super admin')
    return p.parse_args()


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM roles LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        try:
            created_r = ensure_roles(session)
            admin = ensure_initial_admin(session)
            created_s = load_sample(session) if args.sample else 0
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Roles would create: {created_r}, sample rows would create: {created_s}")
            else:
                session.commit()
                print(f"[DONE] Roles created: {created_r}, sample rows created: {created_s}")
            if args.show_roles:
                print('\nRole Catalog:')
                print_role_catalog(session)
            if args.print_token and admin is not None and not args.dry_run:
                from flask_jwt_extended import create_access_token
                print(create_access_token(identity=str(admin.id), additional_claims=token_claims(admin)))
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

if __name__ == '__main__':
    main()
