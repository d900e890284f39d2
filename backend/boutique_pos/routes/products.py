# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/boutique_pos/routes/products.py
"""
Product catalog routes.

Create/update accept either a JSON body or multipart/form-data (when an
`image` file is attached). In multipart requests the `colors`, `sizes` and
`inventory` fields are JSON-encoded strings.
"""
import json

from flask import Blueprint, request, jsonify, current_app

from ..models import Product
from ..services import products_service
from ..services.inventory_service import list_low_stock
from ..services.upload_service import save_product_image, discard_uploaded_image
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    json_object_body,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import with_request_context, current_context

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"product_code"},
)

INVENTORY_KEYS = ("colors", "sizes", "inventory")

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _read_body() -> tuple[dict, dict]:
    """
    Split the request into (product fields, inventory input).

    Returns plain dicts regardless of JSON or multipart encoding.
    """
    if request.mimetype == "multipart/form-data":
        data = {}
        for key, value in request.form.items():
            if key in INVENTORY_KEYS:
                if not value:
                    continue
                try:
                    data[key] = json.loads(value)
                except ValueError:
                    raise ValidationError(f"{key} must be JSON-encoded", field=key)
            else:
                # Empty form inputs mean "not set"
                data[key] = value if value != "" else None
    else:
        data = json_object_body()

    data = dict(data)
    data.pop("employee_id", None)
    inventory_input = {key: data.pop(key) for key in INVENTORY_KEYS if key in data}
    return data, inventory_input


def _parse_inventory(inventory_input: dict) -> list[dict] | None:
    if not inventory_input:
        return None
    return products_service.parse_inventory_spec(
        colors=inventory_input.get("colors"),
        sizes=inventory_input.get("sizes"),
        inventory=inventory_input.get("inventory"),
    )


def _stored_image() -> str | None:
    image = request.files.get("image")
    if image is None or not image.filename:
        return None
    return save_product_image(image)


@products_bp.get("")
@with_request_context
def list_products_route():
    """
    List products, newest first.

    Query params:
    - search: matches product code, name or brand
    - limit: default 50, max 500
    - include_inventory: default true

    The X-Store-Context header adds the channel `price_cents` to each product.
    """
    include_inventory = request.args.get("include_inventory", "true").lower() not in ("0", "false", "no")
    products = products_service.list_products(
        search=request.args.get("search"),
        limit=request.args.get("limit", type=int),
    )
    context = current_context().store_context
    return jsonify({
        "items": [p.to_dict(include_inventory=include_inventory, context=context) for p in products],
        "count": len(products),
    }), 200


@products_bp.get("/low-stock")
def low_stock_route():
    threshold = request.args.get("threshold", type=int)
    items = list_low_stock(threshold)
    return jsonify({
        "threshold": threshold if threshold is not None else current_app.config["LOW_STOCK_THRESHOLD"],
        "items": items,
        "count": len(items),
    }), 200


@products_bp.get("/code/<string:code>")
@with_request_context
def get_product_by_code_route(code: str):
    """Barcode / product-code lookup used by the checkout scanner."""
    try:
        product = products_service.get_product_by_code(code.strip())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"product": product.to_dict(context=current_context().store_context)}), 200


@products_bp.get("/<int:product_id>")
@with_request_context
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"product": product.to_dict(context=current_context().store_context)}), 200


@products_bp.post("")
@with_request_context
def create_product_route():
    """
    Create a product with its color/size inventory.

    Returns:
        201: created product
        400: invalid payload or image
        409: duplicate product_code
    """
    image_url = None
    try:
        fields, inventory_input = _read_body()
        patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        inventory = _parse_inventory(inventory_input)

        image_url = _stored_image()
        if image_url:
            patch["main_image_url"] = image_url

        ctx = current_context()
        product = products_service.create_product(
            patch=patch,
            inventory=inventory,
            actor_name=ctx.employee_name,
            context=ctx.store_context,
        )
        return jsonify({"product": product.to_dict()}), 201

    except ValidationError as e:
        discard_uploaded_image(image_url)
        return jsonify(e.to_dict()), 400
    except ConflictError as e:
        discard_uploaded_image(image_url)
        return jsonify(e.to_dict()), 409
    except Exception:
        discard_uploaded_image(image_url)
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@with_request_context
def update_product_route(product_id: int):
    """
    Update product fields; variants listed in colors/inventory get their
    quantity overwritten, others are left as they are.
    """
    image_url = None
    try:
        fields, inventory_input = _read_body()
        patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        inventory = _parse_inventory(inventory_input)

        image_url = _stored_image()
        if image_url:
            patch["main_image_url"] = image_url

        previous_image_url = products_service.get_product(product_id).main_image_url
        ctx = current_context()
        product = products_service.update_product(
            product_id=product_id,
            patch=patch,
            inventory=inventory,
            actor_name=ctx.employee_name,
            context=ctx.store_context,
        )
        image_url = None  # owned by the product now
        if product.main_image_url != previous_image_url:
            discard_uploaded_image(previous_image_url)
        return jsonify({"product": product.to_dict()}), 200

    except ValidationError as e:
        discard_uploaded_image(image_url)
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        discard_uploaded_image(image_url)
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        discard_uploaded_image(image_url)
        return jsonify(e.to_dict()), 409
    except Exception:
        discard_uploaded_image(image_url)
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@with_request_context
def delete_product_route(product_id: int):
    try:
        ctx = current_context()
        image_url = products_service.get_product(product_id).main_image_url
        products_service.delete_product(
            product_id=product_id,
            actor_name=ctx.employee_name,
            context=ctx.store_context,
        )
        discard_uploaded_image(image_url)
        return jsonify({"deleted": True, "id": product_id}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
