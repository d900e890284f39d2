from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z


class Product(db.Model):
    """
    Apparel product master data.

    Stock is tracked per variant: Product -> ProductColor -> ProductSize.
    A (color, size) combination without a ProductSize row holds zero stock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_brand", "brand"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(50), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=True)
    model_no = db.Column(db.String(100), nullable=True)
    brand = db.Column(db.String(100), nullable=True)
    product_type = db.Column(db.String(100), nullable=True)

    # Per-channel prices in cents
    store_price_cents = db.Column(db.Integer, nullable=True)
    online_price_cents = db.Column(db.Integer, nullable=True)

    specs = db.Column(db.Text, nullable=True)
    main_image_url = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    colors = db.relationship(
        "ProductColor",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductColor.id",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r}>"

    def price_for(self, context: str | None) -> int | None:
        """Channel price, falling back to the other channel's price."""
        if context == "online":
            return self.online_price_cents if self.online_price_cents is not None else self.store_price_cents
        return self.store_price_cents if self.store_price_cents is not None else self.online_price_cents

    def inventory_map(self) -> dict[str, dict[str, int]]:
        return {
            color.color_name: {size.size_label: size.quantity for size in color.sizes}
            for color in self.colors
        }

    def total_stock(self) -> int:
        return sum(size.quantity for color in self.colors for size in color.sizes)

    def to_dict(self, *, include_inventory: bool = True, context: str | None = None) -> dict:
        data = {
            "id": self.id,
            "product_code": self.product_code,
            "name": self.name,
            "model_no": self.model_no,
            "brand": self.brand,
            "product_type": self.product_type,
            "store_price_cents": self.store_price_cents,
            "online_price_cents": self.online_price_cents,
            "specs": self.specs,
            "main_image_url": self.main_image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if context is not None:
            data["price_cents"] = self.price_for(context)
        if include_inventory:
            data["colors"] = [color.to_dict() for color in self.colors]
            data["inventory"] = self.inventory_map()
            data["total_stock"] = self.total_stock()
        return data


class ProductColor(db.Model):
    __tablename__ = "product_colors"
    __table_args__ = (
        db.UniqueConstraint("product_id", "color_name", name="uq_product_colors_product_color"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    color_name = db.Column(db.String(64), nullable=False)
    color_swatch_url = db.Column(db.String(255), nullable=True)

    product = db.relationship("Product", back_populates="colors")
    sizes = db.relationship(
        "ProductSize",
        back_populates="color",
        cascade="all, delete-orphan",
        order_by="ProductSize.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "color_name": self.color_name,
            "color_swatch_url": self.color_swatch_url,
            "sizes": [size.to_dict() for size in self.sizes],
        }


class ProductSize(db.Model):
    """On-hand quantity of one (product, color, size) variant."""
    __tablename__ = "product_sizes"
    __table_args__ = (
        db.UniqueConstraint("color_id", "size_label", name="uq_product_sizes_color_size"),
        db.CheckConstraint("quantity >= 0", name="ck_product_sizes_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    color_id = db.Column(
        db.Integer, db.ForeignKey("product_colors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    size_label = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    color = db.relationship("ProductColor", back_populates="sizes")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "color_id": self.color_id,
            "size_label": self.size_label,
            "quantity": self.quantity,
        }
