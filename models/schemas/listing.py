from marshmallow import Schema, fields, pre_load, validate

from models.schemas.common import strip_string, not_blank


class ListingCreateSchema(Schema):
    title = fields.String(required=True, validate=[not_blank, validate.Length(max=255)])
    price = fields.Float(required=True, validate=validate.Range(min=0, error="Price must be positive."))
    image = fields.Url(allow_none=True)

    @pre_load
    def strip_title(self, data, **kwargs):
        if isinstance(data, dict) and "title" in data:
            data = dict(data, title=strip_string(data["title"]))
        return data


class ListingUpdateSchema(ListingCreateSchema):
    # All optional on update, validated when present
    title = fields.String(validate=[not_blank, validate.Length(max=255)])
    price = fields.Float(validate=validate.Range(min=0, error="Price must be positive."))


class ListingOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    price = fields.Float()
    image = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
