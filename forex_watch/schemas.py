"""Schemas for API requests and responses."""

from __future__ import annotations

from marshmallow import Schema, fields


class RateQuerySchema(Schema):
    base = fields.String(load_default=None)
    quote = fields.String(load_default=None)


class StoredRateSchema(Schema):
    base = fields.String(required=True)
    quote = fields.String(required=True)
    rate = fields.Float(required=True)
    timestamp = fields.DateTime(required=True)
    provider = fields.String(required=True)
    stale = fields.Boolean(required=True)


class LatestRateResponseSchema(Schema):
    message = fields.String(required=True)
    data = fields.Nested(StoredRateSchema, required=True)


class RateListResponseSchema(Schema):
    count = fields.Integer(required=True)
    data = fields.List(fields.Nested(StoredRateSchema), required=True)


class ErrorMessageSchema(Schema):
    message = fields.String(required=True)
    code = fields.String()
