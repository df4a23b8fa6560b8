"""Method descriptor table.

Maps every supported method name to a static description of the upstream
REST call it becomes: API family, HTTP verb, path template, required
parameters, and how optional parameters land in the query string or body.
The same table drives dispatch, ``initialize`` and ``tools/list``.

Public API:
- ApiFamily: WooCommerce store API vs WordPress content API
- MethodDescriptor: one table row
- get_descriptor(name): lookup, raising UnknownMethodError
- iter_descriptors(): rows in advertised order
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from ..core.exceptions import UnknownMethodError

__all__ = [
    "ApiFamily",
    "MetaOperation",
    "ParamSpec",
    "BroadcastEvent",
    "MethodDescriptor",
    "DESCRIPTORS",
    "get_descriptor",
    "iter_descriptors",
]

# -- Constants -----------------------------------------------------------------

DEFAULT_PER_PAGE = 10
DEFAULT_PAGE = 1

# Required parameters that only need to be present; null and "" are values
ALLOW_EMPTY_PARAMS = frozenset({"metaValue"})

_PLACEHOLDER = re.compile(r"{(\w+)}")

# Schema type and description for parameters shared across many methods
_PARAM_DOCS: Dict[str, Tuple[str, str]] = {
    "postId": ("number", "Post ID"),
    "productId": ("number", "Product ID"),
    "orderId": ("number", "Order ID"),
    "customerId": ("number", "Customer ID"),
    "zoneId": ("number", "Shipping zone ID"),
    "instanceId": ("number", "Shipping method instance ID"),
    "rateId": ("number", "Tax rate ID"),
    "couponId": ("number", "Coupon ID"),
    "noteId": ("number", "Order note ID"),
    "refundId": ("number", "Refund ID"),
    "variationId": ("number", "Variation ID"),
    "attributeId": ("number", "Attribute ID"),
    "termId": ("number", "Attribute term ID"),
    "categoryId": ("number", "Category ID"),
    "tagId": ("number", "Tag ID"),
    "reviewId": ("number", "Review ID"),
    "metaId": ("number", "Meta entry ID"),
    "slug": ("string", "Tax class slug"),
    "gatewayId": ("string", "Payment gateway ID"),
    "group": ("string", "Settings group ID"),
    "id": ("string", "Setting ID"),
    "toolId": ("string", "System status tool ID"),
    "metaKey": ("string", "Meta key"),
    "locations": ("array", "Shipping zone locations"),
    "perPage": ("number", "Number of items to retrieve (max 100)"),
    "page": ("number", "Page number"),
    "filters": ("object", "Additional query parameters passed through unchanged"),
    "force": ("boolean", "Whether to bypass trash and force deletion"),
}

_CREDENTIAL_SCHEMA: Dict[str, Dict[str, str]] = {
    "siteUrl": {"type": "string", "description": "WordPress site URL"},
    "consumerKey": {"type": "string", "description": "WooCommerce consumer key"},
    "consumerSecret": {"type": "string", "description": "WooCommerce consumer secret"},
    "username": {"type": "string", "description": "WordPress username"},
    "password": {"type": "string", "description": "WordPress application password"},
}


class ApiFamily(Enum):
    """Upstream API family; decides base path and authentication scheme."""

    WOOCOMMERCE = "woocommerce"
    WORDPRESS = "wordpress"

    @property
    def api_prefix(self) -> str:
        return "wc/v3" if self is ApiFamily.WOOCOMMERCE else "wp/v2"

    @property
    def credential_params(self) -> Tuple[str, ...]:
        if self is ApiFamily.WOOCOMMERCE:
            return ("siteUrl", "consumerKey", "consumerSecret")
        return ("siteUrl", "username", "password")


class MetaOperation(Enum):
    """Read-modify-write operations over an entity's ``meta_data``."""

    GET = "get"
    UPSERT = "upsert"
    DELETE = "delete"


class ParamSpec(NamedTuple):
    """Optional request parameter copied into the upstream query or body.

    ``default`` is sent when the caller omits the parameter; ``None`` means
    the field is left out entirely.
    """

    param: str
    target: str
    type: str = "string"
    description: str = ""
    default: Any = None
    enum: Tuple[str, ...] = ()

    def schema(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": self.type}
        if self.description:
            prop["description"] = self.description
        if self.enum:
            prop["enum"] = list(self.enum)
        if self.default is not None:
            prop["default"] = self.default
        return prop


class BroadcastEvent(NamedTuple):
    channel: str
    event: str


@dataclass(frozen=True)
class MethodDescriptor:
    """Static description of how one method maps onto an upstream call."""

    name: str
    family: ApiFamily
    verb: str
    path: str
    description: str
    required: Tuple[str, ...] = ()
    body: Optional[str] = None
    body_fields: Tuple[ParamSpec, ...] = ()
    query_fields: Tuple[ParamSpec, ...] = ()
    paginated: bool = False
    filters: bool = False
    meta: Optional[MetaOperation] = None
    fallback_path: Optional[str] = None
    broadcast: Optional[BroadcastEvent] = None

    @property
    def path_params(self) -> Tuple[str, ...]:
        names = _PLACEHOLDER.findall(self.path)
        if self.fallback_path:
            names += [n for n in _PLACEHOLDER.findall(self.fallback_path) if n not in names]
        return tuple(names)

    @property
    def is_meta(self) -> bool:
        return self.meta is not None

    def missing_required(self, params: Mapping[str, Any]) -> Optional[str]:
        """Return the first required parameter that is absent, ``None`` or empty."""
        for name in self.required:
            if name in ALLOW_EMPTY_PARAMS:
                if name not in params:
                    return name
                continue
            value = params.get(name)
            if value is None or (isinstance(value, str) and value == ""):
                return name
        return None

    def path_template(self, params: Mapping[str, Any]) -> str:
        """Pick the path template whose placeholders are all supplied."""
        if self.fallback_path and not all(
            params.get(n) not in (None, "") for n in _PLACEHOLDER.findall(self.path)
        ):
            return self.fallback_path
        return self.path

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema advertised through ``initialize`` and ``tools/list``.

        Built fresh on every call so callers may mutate the result.
        """
        properties: Dict[str, Any] = {}

        def add(name: str, prop: Optional[Dict[str, Any]] = None) -> None:
            if name in properties:
                return
            if prop is None:
                type_, description = _PARAM_DOCS.get(name, ("string", name))
                prop = {"type": type_, "description": description}
            properties[name] = prop

        body_prop = None
        if self.body and self.body not in _PARAM_DOCS:
            body_prop = {"type": "object", "description": _data_description(self.body)}

        for name in self.required:
            if name == self.body:
                add(name, body_prop)
            elif name == "metaValue":
                add(name, {"description": "Meta value"})
            else:
                add(name)
        for name in self.path_params:
            add(name)
        if self.body:
            add(self.body, body_prop)
        if self.meta is not None and "metaKey" not in self.required:
            add("metaKey", {"type": "string", "description": "Only return entries with this key"})
        for spec in self.body_fields + self.query_fields:
            add(spec.param, spec.schema())
        if self.paginated:
            add("perPage")
            add("page")
        if self.filters:
            add("filters", {
                "type": "object",
                "description": _PARAM_DOCS["filters"][1],
                "additionalProperties": True,
            })
        for name in self.family.credential_params:
            add(name, dict(_CREDENTIAL_SCHEMA[name]))

        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if self.required:
            schema["required"] = list(self.required)
        return schema


def _data_description(param: str) -> str:
    # productData -> "Product data object"
    words = re.sub(r"([A-Z])", r" \1", param).lower().split()
    return " ".join(words).capitalize() + " object"


# -- Table builders ------------------------------------------------------------


def _wc(name: str, verb: str, path: str, description: str, *required: str, **kwargs: Any) -> MethodDescriptor:
    return MethodDescriptor(name, ApiFamily.WOOCOMMERCE, verb, path, description, tuple(required), **kwargs)


def _wp(name: str, verb: str, path: str, description: str, *required: str, **kwargs: Any) -> MethodDescriptor:
    return MethodDescriptor(name, ApiFamily.WORDPRESS, verb, path, description, tuple(required), **kwargs)


def _force(default: bool) -> Tuple[ParamSpec, ...]:
    return (ParamSpec("force", "force", "boolean", _PARAM_DOCS["force"][1], default),)


def _meta(entity: str, path: str, id_param: str) -> List[MethodDescriptor]:
    return [
        _wc(f"get_{entity}_meta", "GET", path, f"Get {entity} metadata", id_param,
            meta=MetaOperation.GET),
        _wc(f"create_{entity}_meta", "PUT", path, f"Create/update {entity} metadata",
            id_param, "metaKey", "metaValue", meta=MetaOperation.UPSERT),
        _wc(f"update_{entity}_meta", "PUT", path, f"Update {entity} metadata",
            id_param, "metaKey", "metaValue", meta=MetaOperation.UPSERT),
        _wc(f"delete_{entity}_meta", "PUT", path, f"Delete {entity} metadata",
            id_param, "metaKey", meta=MetaOperation.DELETE),
    ]


_PERIOD = ParamSpec("period", "period", "string", "Report period", "month",
                    ("week", "month", "last_month", "year"))
_DATE_RANGE = (
    ParamSpec("dateMin", "date_min", "string", "Start date (YYYY-MM-DD)"),
    ParamSpec("dateMax", "date_max", "string", "End date (YYYY-MM-DD)"),
)

_PRODUCT_FILTERS = (
    ParamSpec("search", "search", "string", "Search term"),
    ParamSpec("category", "category", "string", "Product category ID"),
    ParamSpec("tag", "tag", "string", "Product tag ID"),
    ParamSpec("status", "status", "string", "Product status", enum=("draft", "pending", "private", "publish")),
    ParamSpec("type", "type", "string", "Product type", enum=("simple", "grouped", "external", "variable")),
    ParamSpec("sku", "sku", "string", "Product SKU"),
    ParamSpec("featured", "featured", "boolean", "Limit to featured products"),
)

_ORDER_FILTERS = (
    ParamSpec("search", "search", "string", "Search term"),
    ParamSpec("status", "status", "string", "Order status",
              enum=("pending", "processing", "on-hold", "completed", "cancelled", "refunded", "failed", "trash")),
    ParamSpec("customer", "customer", "number", "Customer ID"),
    ParamSpec("product", "product", "number", "Product ID"),
    ParamSpec("after", "after", "string", "Limit to orders created after date (ISO8601)"),
    ParamSpec("before", "before", "string", "Limit to orders created before date (ISO8601)"),
)

_CUSTOMER_FILTERS = (
    ParamSpec("search", "search", "string", "Search term"),
    ParamSpec("email", "email", "string", "Customer email"),
    ParamSpec("role", "role", "string", "Customer role"),
    ParamSpec("orderby", "orderby", "string", "Sort field", enum=("id", "include", "name", "registered_date")),
    ParamSpec("order", "order", "string", "Sort direction", enum=("asc", "desc")),
)

_POST_FIELDS = (
    ParamSpec("title", "title", "string", "Post title"),
    ParamSpec("content", "content", "string", "Post content"),
)

_LIST = {"paginated": True, "filters": True}

_TABLE: List[MethodDescriptor] = [
    # WordPress content
    _wp("create_post", "POST", "/posts", "Create a new WordPress post", "title", "content",
        body_fields=_POST_FIELDS + (
            ParamSpec("status", "status", "string", "Post status", "draft", ("draft", "publish", "pending", "private")),
        )),
    _wp("get_posts", "GET", "/posts", "Retrieve WordPress posts", paginated=True),
    _wp("update_post", "POST", "/posts/{postId}", "Update an existing WordPress post", "postId",
        body_fields=_POST_FIELDS + (ParamSpec("status", "status", "string", "Post status"),)),
    _wp("get_post_meta", "GET", "/posts/{postId}/meta/{metaKey}", "Get post metadata", "postId",
        fallback_path="/posts/{postId}/meta"),
    _wp("update_post_meta", "PUT", "/posts/{postId}/meta/{metaId}", "Update post metadata",
        "postId", "metaId", "metaValue", body_fields=(ParamSpec("metaValue", "value", "string", "Meta value"),)),
    _wp("create_post_meta", "POST", "/posts/{postId}/meta", "Create post metadata",
        "postId", "metaKey", "metaValue",
        body_fields=(
            ParamSpec("metaKey", "key", "string", "Meta key"),
            ParamSpec("metaValue", "value", "string", "Meta value"),
        )),
    _wp("delete_post_meta", "DELETE", "/posts/{postId}/meta/{metaId}", "Delete post metadata",
        "postId", "metaId", query_fields=_force(True)),

    # Products
    _wc("get_products", "GET", "/products", "Retrieve a list of products",
        query_fields=_PRODUCT_FILTERS, **_LIST),
    _wc("get_product", "GET", "/products/{productId}", "Get a single product by ID", "productId"),
    _wc("create_product", "POST", "/products", "Create a new product", "productData",
        body="productData", broadcast=BroadcastEvent("products", "product_created")),
    _wc("update_product", "PUT", "/products/{productId}", "Update an existing product",
        "productId", "productData", body="productData",
        broadcast=BroadcastEvent("products", "product_updated")),
    _wc("delete_product", "DELETE", "/products/{productId}", "Delete a product", "productId",
        query_fields=_force(False)),
    *_meta("product", "/products/{productId}", "productId"),

    # Product categories
    _wc("get_product_categories", "GET", "/products/categories", "Retrieve product categories", **_LIST),
    _wc("get_product_category", "GET", "/products/categories/{categoryId}", "Get a single product category",
        "categoryId"),
    _wc("create_product_category", "POST", "/products/categories", "Create a new product category",
        "categoryData", body="categoryData"),
    _wc("update_product_category", "PUT", "/products/categories/{categoryId}", "Update a product category",
        "categoryId", "categoryData", body="categoryData"),
    _wc("delete_product_category", "DELETE", "/products/categories/{categoryId}", "Delete a product category",
        "categoryId", query_fields=_force(True)),

    # Product tags
    _wc("get_product_tags", "GET", "/products/tags", "Retrieve product tags", **_LIST),
    _wc("get_product_tag", "GET", "/products/tags/{tagId}", "Get a single product tag", "tagId"),
    _wc("create_product_tag", "POST", "/products/tags", "Create a new product tag", "tagData", body="tagData"),
    _wc("update_product_tag", "PUT", "/products/tags/{tagId}", "Update a product tag",
        "tagId", "tagData", body="tagData"),
    _wc("delete_product_tag", "DELETE", "/products/tags/{tagId}", "Delete a product tag",
        "tagId", query_fields=_force(True)),

    # Product attributes and terms
    _wc("get_product_attributes", "GET", "/products/attributes", "Retrieve product attributes", **_LIST),
    _wc("get_product_attribute", "GET", "/products/attributes/{attributeId}", "Get a single product attribute",
        "attributeId"),
    _wc("create_product_attribute", "POST", "/products/attributes", "Create a new product attribute",
        "attributeData", body="attributeData"),
    _wc("update_product_attribute", "PUT", "/products/attributes/{attributeId}", "Update a product attribute",
        "attributeId", "attributeData", body="attributeData"),
    _wc("delete_product_attribute", "DELETE", "/products/attributes/{attributeId}", "Delete a product attribute",
        "attributeId", query_fields=_force(True)),
    _wc("get_attribute_terms", "GET", "/products/attributes/{attributeId}/terms", "Retrieve attribute terms",
        "attributeId", **_LIST),
    _wc("get_attribute_term", "GET", "/products/attributes/{attributeId}/terms/{termId}",
        "Get a single attribute term", "attributeId", "termId"),
    _wc("create_attribute_term", "POST", "/products/attributes/{attributeId}/terms", "Create a new attribute term",
        "attributeId", "termData", body="termData"),
    _wc("update_attribute_term", "PUT", "/products/attributes/{attributeId}/terms/{termId}",
        "Update an attribute term", "attributeId", "termId", "termData", body="termData"),
    _wc("delete_attribute_term", "DELETE", "/products/attributes/{attributeId}/terms/{termId}",
        "Delete an attribute term", "attributeId", "termId", query_fields=_force(True)),

    # Product variations
    _wc("get_product_variations", "GET", "/products/{productId}/variations", "Retrieve product variations",
        "productId", **_LIST),
    _wc("get_product_variation", "GET", "/products/{productId}/variations/{variationId}",
        "Get a single product variation", "productId", "variationId"),
    _wc("create_product_variation", "POST", "/products/{productId}/variations", "Create a new product variation",
        "productId", "variationData", body="variationData"),
    _wc("update_product_variation", "PUT", "/products/{productId}/variations/{variationId}",
        "Update a product variation", "productId", "variationId", "variationData", body="variationData"),
    _wc("delete_product_variation", "DELETE", "/products/{productId}/variations/{variationId}",
        "Delete a product variation", "productId", "variationId", query_fields=_force(True)),

    # Product reviews; productId narrows to one product when given
    _wc("get_product_reviews", "GET", "/products/{productId}/reviews", "Retrieve product reviews",
        fallback_path="/products/reviews", **_LIST),
    _wc("get_product_review", "GET", "/products/{productId}/reviews/{reviewId}", "Get a single product review",
        "reviewId", fallback_path="/products/reviews/{reviewId}"),
    _wc("create_product_review", "POST", "/products/{productId}/reviews", "Create a new product review",
        "productId", "reviewData", body="reviewData"),
    _wc("update_product_review", "PUT", "/products/{productId}/reviews/{reviewId}", "Update a product review",
        "reviewId", "reviewData", body="reviewData", fallback_path="/products/reviews/{reviewId}"),
    _wc("delete_product_review", "DELETE", "/products/{productId}/reviews/{reviewId}", "Delete a product review",
        "reviewId", query_fields=_force(True), fallback_path="/products/reviews/{reviewId}"),

    # Orders
    _wc("get_orders", "GET", "/orders", "Retrieve a list of orders", query_fields=_ORDER_FILTERS, **_LIST),
    _wc("get_order", "GET", "/orders/{orderId}", "Get a single order by ID", "orderId"),
    _wc("create_order", "POST", "/orders", "Create a new order", "orderData", body="orderData",
        broadcast=BroadcastEvent("orders", "order_created")),
    _wc("update_order", "PUT", "/orders/{orderId}", "Update an existing order", "orderId", "orderData",
        body="orderData", broadcast=BroadcastEvent("orders", "order_updated")),
    _wc("delete_order", "DELETE", "/orders/{orderId}", "Delete an order", "orderId",
        query_fields=_force(False)),
    *_meta("order", "/orders/{orderId}", "orderId"),

    # Order notes
    _wc("get_order_notes", "GET", "/orders/{orderId}/notes", "Retrieve order notes", "orderId", **_LIST),
    _wc("get_order_note", "GET", "/orders/{orderId}/notes/{noteId}", "Get a single order note",
        "orderId", "noteId"),
    _wc("create_order_note", "POST", "/orders/{orderId}/notes", "Create a new order note",
        "orderId", "noteData", body="noteData"),
    _wc("delete_order_note", "DELETE", "/orders/{orderId}/notes/{noteId}", "Delete an order note",
        "orderId", "noteId", query_fields=_force(True)),

    # Order refunds
    _wc("get_order_refunds", "GET", "/orders/{orderId}/refunds", "Retrieve order refunds", "orderId", **_LIST),
    _wc("get_order_refund", "GET", "/orders/{orderId}/refunds/{refundId}", "Get a single order refund",
        "orderId", "refundId"),
    _wc("create_order_refund", "POST", "/orders/{orderId}/refunds", "Create a new order refund",
        "orderId", "refundData", body="refundData"),
    _wc("delete_order_refund", "DELETE", "/orders/{orderId}/refunds/{refundId}", "Delete an order refund",
        "orderId", "refundId", query_fields=_force(True)),

    # Customers
    _wc("get_customers", "GET", "/customers", "Retrieve a list of customers",
        query_fields=_CUSTOMER_FILTERS, **_LIST),
    _wc("get_customer", "GET", "/customers/{customerId}", "Get a single customer by ID", "customerId"),
    _wc("create_customer", "POST", "/customers", "Create a new customer", "customerData", body="customerData"),
    _wc("update_customer", "PUT", "/customers/{customerId}", "Update an existing customer",
        "customerId", "customerData", body="customerData"),
    _wc("delete_customer", "DELETE", "/customers/{customerId}", "Delete a customer", "customerId",
        query_fields=_force(False) + (ParamSpec("reassign", "reassign", "number", "User ID to reassign posts to"),)),
    *_meta("customer", "/customers/{customerId}", "customerId"),

    # Shipping
    _wc("get_shipping_zones", "GET", "/shipping/zones", "Retrieve shipping zones", filters=True),
    _wc("get_shipping_zone", "GET", "/shipping/zones/{zoneId}", "Get a single shipping zone", "zoneId"),
    _wc("create_shipping_zone", "POST", "/shipping/zones", "Create a new shipping zone", "zoneData",
        body="zoneData"),
    _wc("update_shipping_zone", "PUT", "/shipping/zones/{zoneId}", "Update a shipping zone",
        "zoneId", "zoneData", body="zoneData"),
    _wc("delete_shipping_zone", "DELETE", "/shipping/zones/{zoneId}", "Delete a shipping zone", "zoneId",
        query_fields=_force(True)),
    _wc("get_shipping_methods", "GET", "/shipping_methods", "Retrieve shipping methods"),
    _wc("get_shipping_zone_methods", "GET", "/shipping/zones/{zoneId}/methods", "Get shipping methods for a zone",
        "zoneId"),
    _wc("create_shipping_zone_method", "POST", "/shipping/zones/{zoneId}/methods",
        "Create a new shipping method for a zone", "zoneId", "methodData", body="methodData"),
    _wc("update_shipping_zone_method", "PUT", "/shipping/zones/{zoneId}/methods/{instanceId}",
        "Update a shipping method for a zone", "zoneId", "instanceId", "methodData", body="methodData"),
    _wc("delete_shipping_zone_method", "DELETE", "/shipping/zones/{zoneId}/methods/{instanceId}",
        "Delete a shipping method from a zone", "zoneId", "instanceId", query_fields=_force(True)),
    _wc("get_shipping_zone_locations", "GET", "/shipping/zones/{zoneId}/locations",
        "Get locations for a shipping zone", "zoneId"),
    _wc("update_shipping_zone_locations", "PUT", "/shipping/zones/{zoneId}/locations",
        "Update locations for a shipping zone", "zoneId", "locations", body="locations"),

    # Taxes
    _wc("get_tax_classes", "GET", "/taxes/classes", "Retrieve tax classes"),
    _wc("create_tax_class", "POST", "/taxes/classes", "Create a new tax class", "taxClassData",
        body="taxClassData"),
    _wc("delete_tax_class", "DELETE", "/taxes/classes/{slug}", "Delete a tax class", "slug",
        query_fields=_force(True)),
    _wc("get_tax_rates", "GET", "/taxes", "Retrieve tax rates", **_LIST),
    _wc("get_tax_rate", "GET", "/taxes/{rateId}", "Get a single tax rate", "rateId"),
    _wc("create_tax_rate", "POST", "/taxes", "Create a new tax rate", "taxRateData", body="taxRateData"),
    _wc("update_tax_rate", "PUT", "/taxes/{rateId}", "Update a tax rate", "rateId", "taxRateData",
        body="taxRateData"),
    _wc("delete_tax_rate", "DELETE", "/taxes/{rateId}", "Delete a tax rate", "rateId",
        query_fields=_force(True)),

    # Coupons
    _wc("get_coupons", "GET", "/coupons", "Retrieve coupons", **_LIST),
    _wc("get_coupon", "GET", "/coupons/{couponId}", "Get a single coupon", "couponId"),
    _wc("create_coupon", "POST", "/coupons", "Create a new coupon", "couponData", body="couponData"),
    _wc("update_coupon", "PUT", "/coupons/{couponId}", "Update a coupon", "couponId", "couponData",
        body="couponData"),
    _wc("delete_coupon", "DELETE", "/coupons/{couponId}", "Delete a coupon", "couponId",
        query_fields=_force(True)),

    # Payment gateways
    _wc("get_payment_gateways", "GET", "/payment_gateways", "Retrieve payment gateways"),
    _wc("get_payment_gateway", "GET", "/payment_gateways/{gatewayId}", "Get a single payment gateway",
        "gatewayId"),
    _wc("update_payment_gateway", "PUT", "/payment_gateways/{gatewayId}", "Update a payment gateway",
        "gatewayId", "gatewayData", body="gatewayData"),

    # Reports
    _wc("get_sales_report", "GET", "/reports/sales", "Retrieve sales reports",
        query_fields=(_PERIOD,) + _DATE_RANGE, filters=True),
    _wc("get_products_report", "GET", "/reports/products", "Retrieve products reports",
        query_fields=(_PERIOD,) + _DATE_RANGE, **_LIST),
    _wc("get_orders_report", "GET", "/reports/orders", "Retrieve orders reports",
        query_fields=(_PERIOD,) + _DATE_RANGE, **_LIST),
    _wc("get_categories_report", "GET", "/reports/categories", "Retrieve categories reports", **_LIST),
    _wc("get_customers_report", "GET", "/reports/customers", "Retrieve customers reports", **_LIST),
    _wc("get_stock_report", "GET", "/reports/stock", "Retrieve stock reports", **_LIST),
    _wc("get_coupons_report", "GET", "/reports/coupons", "Retrieve coupons reports",
        query_fields=(_PERIOD,) + _DATE_RANGE, **_LIST),
    _wc("get_taxes_report", "GET", "/reports/taxes", "Retrieve taxes reports",
        query_fields=(_PERIOD,) + _DATE_RANGE, **_LIST),

    # Settings
    _wc("get_settings", "GET", "/settings", "Retrieve all settings"),
    _wc("get_setting_options", "GET", "/settings/{group}", "Retrieve options for a setting", "group"),
    _wc("update_setting_option", "PUT", "/settings/{group}/{id}", "Update a setting option",
        "group", "id", "settingData", body="settingData"),

    # System status
    _wc("get_system_status", "GET", "/system_status", "Retrieve system status"),
    _wc("get_system_status_tools", "GET", "/system_status/tools", "Retrieve system status tools"),
    _wc("run_system_status_tool", "PUT", "/system_status/tools/{toolId}", "Run a system status tool", "toolId"),

    # Data
    _wc("get_data", "GET", "/data", "Retrieve store data"),
    _wc("get_continents", "GET", "/data/continents", "Retrieve continents data"),
    _wc("get_countries", "GET", "/data/countries", "Retrieve countries data"),
    _wc("get_currencies", "GET", "/data/currencies", "Retrieve currencies data"),
    _wc("get_current_currency", "GET", "/data/currencies/current", "Get the current currency"),
]

DESCRIPTORS: Dict[str, MethodDescriptor] = {d.name: d for d in _TABLE}

if len(DESCRIPTORS) != len(_TABLE):  # pragma: no cover - guards table edits
    raise RuntimeError("Duplicate method name in descriptor table")


def get_descriptor(name: Optional[str]) -> MethodDescriptor:
    """Return the descriptor for ``name`` or raise ``UnknownMethodError``."""
    descriptor = DESCRIPTORS.get(name) if isinstance(name, str) else None
    if descriptor is None:
        raise UnknownMethodError(name)
    return descriptor


def iter_descriptors() -> Iterator[MethodDescriptor]:
    return iter(DESCRIPTORS.values())
