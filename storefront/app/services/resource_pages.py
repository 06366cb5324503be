# storefront/app/services/resource_pages.py
from __future__ import annotations

from typing import Dict, List

from storefront.app.models.resources import (
    Application,
    AppUser,
    License,
    LogEntry,
    Order,
    Reseller,
    ResellerTransaction,
    Review,
    StoreClient,
    StoreProduct,
    SubscriptionPlan,
    TeamMember,
    Ticket,
    Variable,
)
from storefront.app.services.pages import ResourceSpec

# ----------------------------
# Admin page registry
# ----------------------------

APPLICATIONS = ResourceSpec(
    name="applications",
    path="/applications",
    title="Applications",
    singular="Application",
    model=Application,
    list_endpoint="/admin/apps/",
    item_endpoint="/admin/apps/{id}",
    create_endpoint="/admin/apps/",
    required=("name",),
    search_fields=("name", "version"),
)

RESELLERS = ResourceSpec(
    name="resellers",
    path="/resellers",
    title="Resellers",
    singular="Reseller",
    model=Reseller,
    list_endpoint="/admin/resellers/",
    item_endpoint="/admin/resellers/{id}",
    create_endpoint="/admin/resellers/",
    required=("username",),
    search_fields=("username", "email", "company_name", "discord_id"),
)

LICENSES = ResourceSpec(
    name="licenses",
    path="/licenses",
    title="Licenses",
    singular="License",
    model=License,
    list_endpoint="/admin/licenses/",
    item_endpoint="/admin/licenses/{id}",
    create_endpoint="/admin/licenses/",
    can_update=False,
    required=("app_id",),
    search_fields=("license_key", "hwid", "app_name", "plan_name"),
    list_params=("app_id",),
)

SUBSCRIPTIONS = ResourceSpec(
    name="subscriptions",
    path="/subscriptions",
    title="Subscription plans",
    singular="Plan",
    model=SubscriptionPlan,
    list_endpoint="/admin/subscriptions/plans",
    item_endpoint="/admin/subscriptions/plans/{id}",
    create_endpoint="/admin/subscriptions/plans",
    required=("app_id", "name"),
    search_fields=("name", "app_name", "description"),
    list_params=("app_id",),
)

TICKETS = ResourceSpec(
    name="tickets",
    path="/tickets",
    title="Tickets",
    singular="Ticket",
    model=Ticket,
    list_endpoint="/admin/tickets/",
    item_endpoint="/admin/tickets/{id}",
    can_update=False,
    search_fields=("subject", "created_by", "status"),
)

CLIENTS = ResourceSpec(
    name="clients",
    path="/clients",
    title="Clients",
    singular="Client",
    model=StoreClient,
    list_endpoint="/admin/store/clients/",
    item_endpoint="/admin/store/clients/{id}",
    search_fields=("email", "username"),
)

VARIABLES = ResourceSpec(
    name="variables",
    path="/variables",
    title="Variables",
    singular="Variable",
    model=Variable,
    list_endpoint="/admin/vars/",
    item_endpoint="/admin/vars/{id}",
    create_endpoint="/admin/vars/",
    required=("app_id", "key"),
    search_fields=("key", "value"),
    list_params=("app_id",),
)

TEAM = ResourceSpec(
    name="team",
    path="/manage-team",
    title="Team members",
    singular="Team member",
    model=TeamMember,
    list_endpoint="/admin/team/",
    item_endpoint="/admin/team/{id}",
    create_endpoint="/admin/team/",
    required=("name", "role"),
    search_fields=("name", "role"),
)

REVIEWS = ResourceSpec(
    name="reviews",
    path="/manage-reviews",
    title="Reviews",
    singular="Review",
    model=Review,
    list_endpoint="/admin/store/reviews/",
    item_endpoint="/admin/store/reviews/{id}",
    create_endpoint="/admin/store/reviews/",
    can_update=False,
    required=("content",),
    search_fields=("content", "username", "name"),
)

PRODUCTS = ResourceSpec(
    name="products",
    path="/manage-products",
    title="Products",
    singular="Product",
    model=StoreProduct,
    list_endpoint="/admin/store/",
    item_endpoint="/admin/store/{id}",
    create_endpoint="/admin/store/",
    required=("name", "price"),
    search_fields=("name", "category", "platform", "app_name"),
)

USERS = ResourceSpec(
    name="users",
    path="/users",
    title="Users",
    singular="User",
    model=AppUser,
    list_endpoint="/admin/users/",
    item_endpoint="/admin/users/{id}",
    can_update=False,
    search_fields=("username", "email", "license_key", "subscription_name"),
    list_params=("app_id", "is_banned"),
)

ORDERS = ResourceSpec(
    name="orders",
    path="/orders",
    title="Orders",
    singular="Order",
    model=Order,
    list_endpoint="/admin/store/orders/all",
    can_update=False,
    can_delete=False,
    search_fields=("id", "client_email", "client_username", "status", "transaction_id"),
)

LOGS = ResourceSpec(
    name="logs",
    path="/logs",
    title="Logs",
    singular="Log",
    model=LogEntry,
    list_endpoint="/admin/logs/",
    can_update=False,
    can_delete=False,
    search_fields=("action", "username", "ip_address", "details", "type"),
)

ADMIN_PAGES: List[ResourceSpec] = [
    APPLICATIONS,
    RESELLERS,
    LICENSES,
    SUBSCRIPTIONS,
    TICKETS,
    CLIENTS,
    VARIABLES,
    TEAM,
    REVIEWS,
    PRODUCTS,
    USERS,
    ORDERS,
    LOGS,
]


# ----------------------------
# Reseller panel
# ----------------------------

RESELLER_LICENSES = ResourceSpec(
    name="reseller-licenses",
    path="/reseller/licenses",
    title="Licenses",
    singular="License",
    model=License,
    list_endpoint="/reseller/licenses/",
    item_endpoint="/reseller/licenses/{id}",
    create_endpoint="/reseller/licenses/generate",
    can_update=False,
    required=("app_id", "duration_days"),
    search_fields=("license_key", "hwid", "app_name"),
    list_params=("app_id",),
)

RESELLER_APPLICATIONS = ResourceSpec(
    name="reseller-applications",
    path="/reseller/applications",
    title="Applications",
    singular="Application",
    model=Application,
    list_endpoint="/reseller/apps",
    can_update=False,
    can_delete=False,
    search_fields=("name", "version"),
)

RESELLER_TRANSACTIONS = ResourceSpec(
    name="reseller-transactions",
    path="/reseller/transactions",
    title="Transactions",
    singular="Transaction",
    model=ResellerTransaction,
    list_endpoint="/reseller/transactions",
    can_update=False,
    can_delete=False,
    search_fields=("transaction_type", "description"),
)

RESELLER_PAGES: List[ResourceSpec] = [
    RESELLER_LICENSES,
    RESELLER_APPLICATIONS,
    RESELLER_TRANSACTIONS,
]

BY_NAME: Dict[str, ResourceSpec] = {s.name: s for s in ADMIN_PAGES + RESELLER_PAGES}
