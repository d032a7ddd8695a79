"""Serializers for exposing pages over APIs"""

import marshmallow as ma

from folio.core.page import ALL_RESULTS, UNKNOWN, Page


class BaseSerializer(ma.Schema):
    """Base serializer with which to define custom serializers."""


class PageSchema(BaseSerializer):
    """Serializes a `Page`, and loads serialized data back into a `Page`.

    Results are dumped as they are. Use `page_schema_for()` to serialize each result through a
    schema of its own.
    """

    class Meta:
        unknown = ma.EXCLUDE

    first_result = ma.fields.Integer(load_default=0, validate=ma.validate.Range(min=0))
    page_size = ma.fields.Integer(load_default=ALL_RESULTS)
    total_results = ma.fields.Integer(load_default=UNKNOWN)
    index = ma.fields.Integer(dump_only=True)
    results = ma.fields.List(ma.fields.Raw(), required=True)

    @ma.post_load
    def make_page(self, data, **kwargs):
        return Page(**data)


def page_schema_for(item_schema):
    """Return a `PageSchema` subclass that nests each result in `item_schema`"""
    return type(
        f"{item_schema.__name__}PageSchema",
        (PageSchema,),
        {"results": ma.fields.List(ma.fields.Nested(item_schema), required=True)},
    )
