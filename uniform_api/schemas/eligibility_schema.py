# uniform_api/schemas/eligibility_schema.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError


class EligibilityRuleSchema(Schema):
    """Schema for creating a designation eligibility rule."""

    designation = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    gender = fields.Str(required=True)
    company_name = fields.Str(allow_none=True)

    # {"shirt": {"quantity": 2, "renewal_frequency": 6, "renewal_unit": "months"}, ...}
    item_eligibility = fields.Dict(keys=fields.Str(), values=fields.Dict(), allow_none=True)
    allowed_categories = fields.List(fields.Str(), allow_none=True)

    @validates_schema
    def validate_categories(self, data, **kwargs):
        if not data.get("item_eligibility") and not data.get("allowed_categories"):
            raise ValidationError(
                "Select at least one product category",
                field_name="item_eligibility",
            )


class EligibilityRuleUpdateSchema(Schema):
    """Schema for editing a rule. Every field is optional."""

    designation = fields.Str(validate=validate.Length(min=1, max=200))
    gender = fields.Str()
    item_eligibility = fields.Dict(keys=fields.Str(), values=fields.Dict())
    allowed_categories = fields.List(fields.Str())
    status = fields.Str(validate=validate.OneOf(["active", "inactive"]))
    propagate_reset = fields.Bool(load_default=False)


class EligibilityRuleQuerySchema(Schema):
    include_inactive = fields.Bool(load_default=False)
