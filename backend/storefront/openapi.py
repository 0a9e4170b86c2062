"""Deterministic OpenAPI description of the storefront API.

Every GET is served through the conditional cache, so each documents the
``ETag`` response header and a ``304`` response. Output ordering is stable
(insertion order) so the document can be diffed between releases.
"""
from typing import Any, Dict, List, Tuple

# (SchemaName, list path, single path or None, public)
RESOURCES: List[Tuple[str, str, Any, bool]] = [
    ("Product", "/catalog/products", "/catalog/products/{product_id}", True),
    ("Category", "/catalog/categories", None, True),
    ("Brand", "/catalog/brands", None, True),
    ("Order", "/orders", "/orders/{order_id}", False),
    ("Product", "/admin/products", None, False),
    ("User", "/admin/users", None, False),
    ("Order", "/admin/orders", None, False),
]

# (path, method, summary, schema)
ACTIONS: List[Tuple[str, str, str, str]] = [
    ("/auth/register", "post", "Register customer account", "User"),
    ("/auth/login", "post", "Login", "Token"),
    ("/orders", "post", "Place order from cart", "Order"),
    ("/orders/{order_id}/cancel", "post", "Cancel own order", "Order"),
    ("/admin/products", "post", "Create product", "Product"),
    ("/admin/products/{product_id}", "put", "Update product", "Product"),
    ("/admin/products/{product_id}", "delete", "Delete product", "Product"),
    ("/admin/categories", "post", "Create category", "Category"),
    ("/admin/categories/{category_id}", "put", "Update category", "Category"),
    ("/admin/brands", "post", "Create brand", "Brand"),
    ("/admin/users/{user_id}", "put", "Update user role or status", "User"),
    ("/admin/orders/{order_id}/status", "post", "Transition order status", "Order"),
    ("/admin/orders/{order_id}/payment", "post", "Set order payment status", "Order"),
]

SCHEMAS: Dict[str, Dict[str, str]] = {
    "Product": {"id": "integer", "name": "string", "slug": "string", "sku": "string", "price_cents": "integer",
                "stock": "integer", "category": "string", "brand": "string", "is_published": "boolean"},
    "Category": {"id": "integer", "name": "string", "slug": "string"},
    "Brand": {"id": "integer", "name": "string", "slug": "string"},
    "Order": {"id": "integer", "status": "string", "payment_status": "string", "total_cents": "integer"},
    "User": {"id": "integer", "name": "string", "email": "string", "role": "string"},
    "Token": {"access_token": "string"},
}

ORDER_TRANSITIONS_DOC = ["PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED"]


def caching_headers() -> Dict[str, Any]:
    return {"ETag": {"description": "Strong entity tag of the response body", "schema": {"type": "string"}}}


def _path_params(path: str) -> List[Dict[str, Any]]:
    names = [seg[1:-1] for seg in path.split("/") if seg.startswith("{")]
    return [{"name": n, "in": "path", "required": True, "schema": {"type": "integer"}} for n in names]


def _conditional_get(summary: str, schema: Dict[str, Any], path: str, extra_params=()) -> Dict[str, Any]:
    return {
        "summary": summary,
        "parameters": _path_params(path) + list(extra_params) + [{"$ref": "#/components/parameters/IfNoneMatch"}],
        "responses": {
            "200": {"description": "OK", "headers": caching_headers(),
                    "content": {"application/json": {"schema": schema}}},
            "304": {"description": "Not Modified", "headers": caching_headers()},
            "404": {"$ref": "#/components/responses/NotFound"},
        },
    }


def build_openapi_spec() -> Dict[str, Any]:
    schemas: Dict[str, Any] = {
        name: {"type": "object", "properties": {k: {"type": t} for k, t in props.items()}}
        for name, props in SCHEMAS.items()
    }
    schemas["Order"]["x-transitions"] = ORDER_TRANSITIONS_DOC
    schemas["Pagination"] = {
        "type": "object",
        "properties": {k: {"type": "integer"} for k in ("total", "limit", "offset", "returned")},
        "required": ["total", "limit", "offset", "returned"],
    }
    schemas["Error"] = {
        "type": "object",
        "properties": {"error": {"type": "object", "properties": {
            "status": {"type": "integer"}, "title": {"type": "string"}, "detail": {"type": "string"}}}},
    }

    components: Dict[str, Any] = {
        "schemas": schemas,
        "responses": {
            "NotFound": {"description": "Not Found", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}},
            "BadRequest": {"description": "Bad Request", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}},
        },
        "parameters": {
            "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 50}},
            "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
            "SortParam": {"name": "sort", "in": "query", "schema": {"type": "string"},
                          "description": "Comma separated fields, '-' prefix for descending"},
            "IfNoneMatch": {"name": "If-None-Match", "in": "header", "schema": {"type": "string"},
                            "description": "Entity tags from a previous response, or *"},
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
    }

    paths: Dict[str, Any] = {
        "/auth/me": {"get": _conditional_get("Current user", {"$ref": "#/components/schemas/User"}, "/auth/me")},
    }
    list_params = [{"$ref": "#/components/parameters/LimitParam"},
                   {"$ref": "#/components/parameters/OffsetParam"},
                   {"$ref": "#/components/parameters/SortParam"}]
    for schema_name, list_path, single_path, public in RESOURCES:
        ref = {"$ref": f"#/components/schemas/{schema_name}"}
        list_schema = {"type": "object", "properties": {
            "data": {"type": "array", "items": ref},
            "pagination": {"$ref": "#/components/schemas/Pagination"},
        }}
        op = _conditional_get(f"List {list_path.rsplit('/', 1)[-1]}", list_schema, list_path, list_params)
        if public:
            op["security"] = []
        paths.setdefault(list_path, {})["get"] = op
        if single_path:
            op = _conditional_get(f"Get {schema_name.lower()}", ref, single_path)
            if public:
                op["security"] = []
            paths.setdefault(single_path, {})["get"] = op

    for path, method, summary, schema_name in ACTIONS:
        paths.setdefault(path, {})[method] = {
            "summary": summary,
            "parameters": _path_params(path),
            "responses": {
                "200": {"description": "OK", "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{schema_name}"}}}},
                "400": {"$ref": "#/components/responses/BadRequest"},
            },
        }
    for path in ("/auth/register", "/auth/login"):
        paths[path]["post"]["security"] = []

    tag_desc: Dict[str, str] = {}
    for path, ops in paths.items():
        tag = path.split("/")[1].capitalize()
        for method, od in ops.items():
            rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "")
            od["operationId"] = f"{method}_{rid}"
            od["tags"] = [tag]
        tag_desc[tag] = f"{tag} endpoints"

    return {
        "openapi": "3.0.3",
        "info": {"title": "Storefront API", "version": "1.0.0"},
        "paths": paths,
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": d} for n, d in sorted(tag_desc.items())],
    }


__all__ = ["build_openapi_spec", "caching_headers"]
