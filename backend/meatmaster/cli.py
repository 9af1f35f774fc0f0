# Overview: Flask CLI command groups for bootstrap, tenant management, and inventory inspection.

# backend/meatmaster/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--name "MeatMaster Pro"] [--slug meatmaster]
#   Idempotent bootstrap: demo tenant, users, categories, products and customers.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenant management (MULTI-TENANT):
# - python -m flask tenants list
#   List all tenants.
# - python -m flask tenants create --name "Casa de Carnes" [--slug casa] [--email a@b.com]
#   Create a new tenant.
#
# Inventory inspection/maintenance:
# - python -m flask inventory history --tenant-id 1 [--limit 20] [--product-id 3]
#   Print ledger entries newest-first.
# - python -m flask inventory adjust --tenant-id 1 --product-id 3 --delta 10 --type entry --reason "Delivery"
#   Manual stock movement (paired with its ledger entry).
# - python -m flask inventory reconcile --tenant-id 1
#   Check stock == opening stock + ledger sum for every product.

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Customer, Product, User, MOVEMENT_TYPES
from .services import catalog_service, customer_service, ledger_service, tenant_service
from .services.catalog_service import CatalogError
from .services.tenant_service import UnknownActor
from .validation import ConflictError, ValidationError
from .quantities import to_quantity, format_quantity

DEMO_USERS = (
    ("admin", "Administrador", "admin"),
    ("caixa", "Operador de Caixa", "cashier"),
    ("estoque", "Gerente de Estoque", "stock_manager"),
)

DEMO_CATEGORIES = (
    ("Carnes Bovinas", "bovinos"),
    ("Carnes Suínas", "suinos"),
    ("Aves", "aves"),
    ("Acessórios", "acessorios"),
    ("Bebidas", "bebidas"),
    ("Kits & Promoções", "kits"),
)

# name, description, price_cents, promotional_price_cents, unit, category slug, opening stock, is_kit
DEMO_PRODUCTS = (
    ("Picanha Premium", "Corte nobre, ideal para churrasco.", 8990, None, "kg", "bovinos", "50", False),
    ("Costela Gaúcha", "Costela janela, perfeita para fogo de chão.", 3990, 3490, "kg", "bovinos", "100", False),
    ("Linguiça Toscana", "Linguiça artesanal temperada.", 2490, None, "kg", "suinos", "80", False),
    ("Carvão 5kg", "Saco de carvão vegetal de eucalipto.", 1500, None, "un", "acessorios", "200", False),
    ("Kit Churrasco Família", "2kg Picanha + 1kg Linguiça + 1 pct Carvão", 19990, 17990, "un", "kits", "10", True),
)

DEMO_CUSTOMERS = (
    ("João Silva", "joao@email.com", "(11) 99999-9999", "Rua das Flores, 123"),
    ("Maria Oliveira", "maria@email.com", "(11) 98888-8888", "Av. Paulista, 1000"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--name', 'tenant_name', default='MeatMaster Pro', help='Tenant name')
@click.option('--slug', default='meatmaster', help='Tenant slug')
@with_appcontext
def init_system(tenant_name, slug):
    """
    Initialize a demo tenant with users, catalog and customers.

    Safe to run repeatedly: existing rows (matched by slug, username or
    name) are reused. Opening stock is booked as ledger "entry" movements.
    """
    click.echo("START Initializing MeatMaster...")

    # 1. Tenant
    tenant = tenant_service.get_tenant_by_slug(slug)
    if tenant is None:
        tenant = tenant_service.create_tenant(name=tenant_name, slug=slug)
        click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Slug: {tenant.slug})")
    else:
        click.echo(f"PASS Using existing tenant: {tenant.name} (ID: {tenant.id})")

    # 2. Users
    admin = None
    for username, name, role in DEMO_USERS:
        user = db.session.query(User).filter_by(tenant_id=tenant.id, username=username).first()
        if user is None:
            user = tenant_service.create_user(tenant_id=tenant.id, username=username, name=name, role=role)
            click.echo(f"PASS Created user: {username} ({role})")
        if role == "admin":
            admin = user

    # 3. Categories
    categories = {}
    for name, cat_slug in DEMO_CATEGORIES:
        category = db.session.query(Category).filter_by(tenant_id=tenant.id, slug=cat_slug).first()
        if category is None:
            category = Category(tenant_id=tenant.id, name=name, slug=cat_slug)
            db.session.add(category)
            db.session.commit()
        categories[cat_slug] = category
    click.echo(f"PASS Categories ready: {len(categories)}")

    # 4. Products
    created = 0
    for name, description, price, promo, unit, cat_slug, stock, is_kit in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(tenant_id=tenant.id, name=name).first():
            continue
        catalog_service.create_product(
            tenant_id=tenant.id,
            patch={
                "name": name,
                "description": description,
                "price_cents": price,
                "promotional_price_cents": promo,
                "unit": unit,
                "category_id": categories[cat_slug].id,
                "stock_quantity": Decimal(stock),
                "is_kit": is_kit,
            },
            actor_user_id=admin.id if admin else None,
        )
        created += 1
    click.echo(f"PASS Products created: {created}")

    # 5. Customers
    for name, email, phone, address in DEMO_CUSTOMERS:
        if db.session.query(Customer).filter_by(tenant_id=tenant.id, name=name).first():
            continue
        customer_service.create_customer(
            tenant_id=tenant.id,
            patch={"name": name, "email": email, "phone": phone, "address": address},
        )

    click.echo(f"\nDONE Tenant ready. Send X-Tenant-ID: {tenant.id} with API requests.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('tenants')
def tenants_group():
    """Tenant management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    tenants = tenant_service.list_tenants()
    if not tenants:
        click.echo("No tenants found.")
        return
    for t in tenants:
        click.echo(f"{t.id}\t{t.slug}\t{t.name}")


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant display name')
@click.option('--slug', default=None, help='URL slug (derived from name when omitted)')
@click.option('--email', default=None, help='Contact email')
@with_appcontext
def create_tenant(name, slug, email):
    try:
        tenant = tenant_service.create_tenant(name=name, slug=slug, email=email)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Slug: {tenant.slug})")


@click.group('inventory')
def inventory_group():
    """Inventory ledger inspection and maintenance."""


@inventory_group.command('history')
@click.option('--tenant-id', type=int, required=True)
@click.option('--limit', type=int, default=None, help='Max entries (default LEDGER_HISTORY_LIMIT)')
@click.option('--product-id', type=int, default=None)
@with_appcontext
def inventory_history(tenant_id, limit, product_id):
    entries = ledger_service.history(tenant_id, limit, product_id=product_id)
    if not entries:
        click.echo("No ledger entries.")
        return
    for e in entries:
        click.echo(
            f"{e['created_at']}\t{e['type']}\t{e['quantity_change']}\t"
            f"{e['product_name']}\t{e['user_name'] or '-'}\t{e['reason'] or ''}"
        )


@inventory_group.command('adjust')
@click.option('--tenant-id', type=int, required=True)
@click.option('--product-id', type=int, required=True)
@click.option('--delta', required=True, help='Signed quantity change, e.g. 10 or -2.5')
@click.option('--type', 'movement_type', type=click.Choice([t for t in MOVEMENT_TYPES if t != "sale"]), required=True)
@click.option('--reason', default=None)
@click.option('--user-id', type=int, default=None, help='Actor to attribute the movement to')
@with_appcontext
def inventory_adjust(tenant_id, product_id, delta, movement_type, reason, user_id):
    try:
        qty = to_quantity(delta)
        entry = ledger_service.manual_adjust(
            tenant_id=tenant_id,
            product_id=product_id,
            actor_user_id=user_id,
            delta=qty,
            movement_type=movement_type,
            reason=reason,
        )
    except (ValueError, CatalogError, UnknownActor) as e:
        raise click.ClickException(str(e))

    product = db.session.get(Product, entry.product_id)
    click.echo(
        f"PASS {movement_type} {format_quantity(entry.quantity_change)} -> "
        f"{product.name} now {format_quantity(product.stock_quantity)}"
    )


@inventory_group.command('reconcile')
@click.option('--tenant-id', type=int, required=True)
@with_appcontext
def inventory_reconcile(tenant_id):
    """Exit code 1 when any product's stock drifted from its ledger."""
    drifted = 0
    for product in catalog_service.list_products(tenant_id):
        result = ledger_service.stock_reconciliation(tenant_id, product.id)
        status = "PASS" if result["balanced"] else "FAIL"
        if not result["balanced"]:
            drifted += 1
        click.echo(
            f"{status} {product.name}: opening {result['opening_quantity']} + "
            f"ledger {result['ledger_sum']} vs stock {result['stock_quantity']}"
        )
    if drifted:
        raise click.ClickException(f"{drifted} product(s) out of balance")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(inventory_group)
