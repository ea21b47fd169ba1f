from marshmallow import EXCLUDE, Schema, fields, validate

from stickershop.core.pricing_tables import QUANTITY_DEFAULT, SIZE_DEFAULT_INCHES, SIZE_MAX_INCHES, SIZE_MIN_INCHES


class SingleCheckoutSchema(Schema):
    """
    Single sticker order as posted by the order form.

    Presence and range checks live in CheckoutService so the error messages
    stay the ones the form expects; this schema only maps the camelCase keys.
    """

    class Meta:
        unknown = EXCLUDE

    job_name = fields.Str(data_key="jobName", load_default=None, allow_none=True)
    material = fields.Str(load_default=None, allow_none=True)
    material_id = fields.Str(data_key="materialId", load_default=None, allow_none=True)
    size = fields.Str(load_default=None, allow_none=True)
    cutting = fields.Str(load_default=None, allow_none=True)
    cutting_id = fields.Str(data_key="cuttingId", load_default=None, allow_none=True)
    quantity = fields.Raw(load_default=None, allow_none=True)
    notes = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=2000))
    file_url = fields.Str(data_key="fileUrl", load_default=None, allow_none=True)
    file_key = fields.Str(data_key="fileKey", load_default=None, allow_none=True)
    file_name = fields.Str(data_key="fileName", load_default=None, allow_none=True)
    unit_price_cents = fields.Raw(data_key="unitPriceCents", load_default=None, allow_none=True)
    total_price_cents = fields.Raw(data_key="totalPriceCents", load_default=None, allow_none=True)


class CartCheckoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    # Each item is validated by its own pydantic model in CheckoutService
    items = fields.List(fields.Dict(), load_default=None, allow_none=True)


class QuoteQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    size = fields.Float(
        load_default=SIZE_DEFAULT_INCHES,
        allow_nan=False,
        validate=validate.Range(min=SIZE_MIN_INCHES, max=SIZE_MAX_INCHES),
    )
    quantity = fields.Int(load_default=QUANTITY_DEFAULT, strict=False)
    material = fields.Str(load_default=None)
    cutting = fields.Str(load_default=None)
