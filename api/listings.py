from __future__ import annotations

from flask import Blueprint, request, jsonify

from models import storage
from models.listing import Listing
from models.schemas.listing import (
    ListingCreateSchema,
    ListingUpdateSchema,
    ListingOutSchema,
)
from utils.decorators import jwt_required
from api.errors import NotFound

bp = Blueprint("listings", __name__, url_prefix="/listings")

create_schema = ListingCreateSchema()
update_schema = ListingUpdateSchema()
out_schema = ListingOutSchema()
out_list_schema = ListingOutSchema(many=True)


def _get_listing_or_404(listing_id: str) -> Listing:
    listing = storage.get(Listing, listing_id)
    if not listing:
        raise NotFound("Listing not found")
    return listing


@bp.get("")
def list_listings():
    session = storage.get_session()
    rows = session.query(Listing).order_by(Listing.created_at.desc()).all()
    return jsonify({"listings": out_list_schema.dump(rows)})


@bp.get("/<listing_id>")
def get_listing(listing_id: str):
    listing = _get_listing_or_404(listing_id)
    return jsonify({"listing": out_schema.dump(listing)})


@bp.post("")
@jwt_required()
def create_listing():
    """
    Create a listing: body {title, price, image?}
    201 {message, listing} | 400 validation error | 401
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    listing = Listing(title=data["title"], price=data["price"], image=data.get("image"))
    storage.new(listing)
    storage.save()
    return jsonify({"message": "Listing created successfully", "listing": out_schema.dump(listing)}), 201


@bp.put("/<listing_id>")
@jwt_required()
def update_listing(listing_id: str):
    """Partial update; only fields present in the body change."""
    listing = _get_listing_or_404(listing_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    for field, value in data.items():
        setattr(listing, field, value)
    storage.new(listing)
    storage.save()
    return jsonify({"message": "Listing updated successfully", "listing": out_schema.dump(listing)})


@bp.delete("/<listing_id>")
@jwt_required()
def delete_listing(listing_id: str):
    listing = _get_listing_or_404(listing_id)
    out = out_schema.dump(listing)
    storage.delete(listing)
    storage.save()
    return jsonify({"message": "Listing deleted successfully", "listing": out})
