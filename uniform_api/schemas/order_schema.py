# uniform_api/schemas/order_schema.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError


class CartLineSchema(Schema):
    category = fields.Str(required=True)
    quantity = fields.Int(required=True)


class CartValidationSchema(Schema):
    """
    mode=checkout: decide every category in `items`.
    mode=add: decide only `category` when `quantity` more is added to `items`.
    """

    mode = fields.Str(load_default="checkout", validate=validate.OneOf(["checkout", "add"]))
    items = fields.List(fields.Nested(CartLineSchema), load_default=list)
    category = fields.Str(allow_none=True)
    quantity = fields.Int(load_default=1)

    @validates_schema
    def validate_add_mode(self, data, **kwargs):
        if data.get("mode") == "add" and not data.get("category"):
            raise ValidationError("category is required when mode is add", field_name="category")


class OrderItemSchema(Schema):
    sku = fields.Str(required=True, validate=validate.Length(min=1))
    size = fields.Str(required=True)
    quantity = fields.Int(required=True, validate=validate.Range(min=1))


class PlaceOrderSchema(Schema):
    items = fields.List(fields.Nested(OrderItemSchema), required=True, validate=validate.Length(min=1))


class BulkImportQuerySchema(Schema):
    format = fields.Str(load_default="json", validate=validate.OneOf(["json", "csv"]))
