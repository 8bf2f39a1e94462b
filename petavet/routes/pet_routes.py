from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from petavet import db
from petavet.models import Pet, PetStatus, User
from petavet.services.pet_service import (
    can_hard_delete, can_modify_pet, can_view_pet, format_pet, parse_iso_date, search_pets
)
from petavet.utils.auth_middleware import login_required
from petavet.utils.role_utils import has_permission
from petavet.utils.util import parse_id

logger = logging.getLogger(__name__)

pet_ns = Namespace('pets', description='Patient (pet) records')

# Swagger model
pet_model = pet_ns.model('Pet', {
    'id': fields.String(description='Pet ID, required for updates'),
    'ownerId': fields.String(description='Owner ID, staff only; customers always own what they create'),
    'name': fields.String(required=True),
    'species': fields.String(required=True),
    'breed': fields.String(),
    'dateOfBirth': fields.String(description='YYYY-MM-DD'),
    'gender': fields.String(),
    'weight': fields.Float(),
    'color': fields.String(),
    'microchipId': fields.String(),
    'medicalConditions': fields.String(),
    'allergies': fields.String(),
    'medications': fields.String(),
    'profileImage': fields.String(),
    'notes': fields.String(),
    'status': fields.String(description='ACTIVE or INACTIVE')
})

# JSON key -> column
UPDATABLE_FIELDS = {
    'name': 'name',
    'species': 'species',
    'breed': 'breed',
    'gender': 'gender',
    'weight': 'weight',
    'color': 'color',
    'microchipId': 'microchip_id',
    'medicalConditions': 'medical_conditions',
    'allergies': 'allergies',
    'medications': 'medications',
    'profileImage': 'profile_image',
    'notes': 'notes',
}


@pet_ns.route('')
class PetList(Resource):
    @login_required
    @pet_ns.doc('list_pets', params={
        'id': 'Single pet ID', 'ownerId': 'Owner ID (staff)', 'search': 'Name, species, breed or microchip',
        'includeInactive': 'true to include soft-deleted pets'
    })
    def get(self):
        """List the pets visible to the current user"""
        user = g.user
        include_inactive = request.args.get('includeInactive') == 'true'

        try:
            if request.args.get('id'):
                pet_id = parse_id(request.args['id'])
                if pet_id is None:
                    return {'error': 'Invalid pet ID'}, 400
                pet = db.session.get(Pet, pet_id)
                if not pet:
                    return {'error': 'Pet not found'}, 404
                if not can_view_pet(user, pet):
                    return {'error': 'Not authorized to view this pet'}, 403
                return format_pet(pet), 200

            if not has_permission(user, 'read:all-pets'):
                pets = search_pets(request.args.get('search'), include_inactive, owner_id=user.id)
            elif request.args.get('ownerId'):
                owner_id = parse_id(request.args['ownerId'])
                if owner_id is None:
                    return {'error': 'Invalid owner ID'}, 400
                pets = search_pets(request.args.get('search'), include_inactive, owner_id=owner_id)
            else:
                pets = search_pets(request.args.get('search'), include_inactive)
            return [format_pet(p) for p in pets], 200
        except Exception as e:
            logger.error(f"Error fetching pets: {str(e)}")
            return {'error': 'Failed to fetch pets'}, 500

    @login_required
    @pet_ns.expect(pet_model)
    def post(self):
        """Register a pet"""
        user = g.user
        data = request.get_json(silent=True) or {}
        if not data.get('name') or not data.get('species'):
            return {'error': 'Name and species are required'}, 400
        if not has_permission(user, 'write:pets'):
            return {'error': 'Forbidden'}, 403

        if has_permission(user, 'write:any-pet') and data.get('ownerId'):
            owner_id = parse_id(data['ownerId'])
            if owner_id is None:
                return {'error': 'Invalid owner ID'}, 400
            if not db.session.get(User, owner_id):
                return {'error': 'Owner not found'}, 404
        elif has_permission(user, 'write:any-pet'):
            return {'error': 'Owner ID is required'}, 400
        else:
            owner_id = user.id

        try:
            pet = Pet(
                owner_id=owner_id,
                name=data['name'],
                species=data['species'],
                breed=data.get('breed') or None,
                birth_date=parse_iso_date(data.get('dateOfBirth')),
                gender=data.get('gender') or 'UNKNOWN',
                weight=data.get('weight') or None,
                color=data.get('color') or None,
                microchip_id=data.get('microchipId') or None,
                medical_conditions=data.get('medicalConditions') or None,
                allergies=data.get('allergies') or None,
                medications=data.get('medications') or None,
                profile_image=data.get('profileImage') or None,
                notes=data.get('notes') or None,
                status=PetStatus.ACTIVE
            )
            db.session.add(pet)
            db.session.commit()
            logger.info(f"Pet {pet.id} registered for owner {owner_id} by user {user.id}")
            return format_pet(pet), 201
        except ValueError as ve:
            db.session.rollback()
            return {'error': f'Invalid value: {ve}'}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating pet: {str(e)}")
            return {'error': 'Failed to create pet'}, 500

    @login_required
    @pet_ns.expect(pet_model)
    def put(self):
        """Update the fields supplied in the body"""
        user = g.user
        data = request.get_json(silent=True) or {}
        raw_id = data.get('id') or data.get('pet_id')
        if not raw_id:
            return {'error': 'Pet ID is required'}, 400
        pet_id = parse_id(raw_id)
        if pet_id is None:
            return {'error': 'Invalid pet ID'}, 400

        try:
            pet = db.session.get(Pet, pet_id)
            if not pet:
                return {'error': 'Pet not found'}, 404
            if not can_modify_pet(user, pet):
                return {'error': 'Not authorized to update this pet'}, 403

            for key, column in UPDATABLE_FIELDS.items():
                if key in data:
                    setattr(pet, column, data[key])
            if 'dateOfBirth' in data:
                pet.birth_date = parse_iso_date(data['dateOfBirth'])
            if 'status' in data:
                pet.status = PetStatus(str(data['status']).upper())

            db.session.commit()
            return format_pet(pet), 200
        except ValueError as ve:
            db.session.rollback()
            return {'error': f'Invalid value: {ve}'}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating pet {pet_id}: {str(e)}")
            return {'error': 'Failed to update pet'}, 500

    @login_required
    @pet_ns.doc('delete_pet', params={'id': 'Pet ID', 'hardDelete': 'true to remove the row (administrators)'})
    def delete(self):
        """Deactivate a pet, or remove it entirely when an administrator asks for a hard delete"""
        user = g.user
        raw_id = request.args.get('id')
        if not raw_id:
            return {'error': 'Pet ID is required'}, 400
        pet_id = parse_id(raw_id)
        if pet_id is None:
            return {'error': 'Invalid pet ID'}, 400

        try:
            pet = db.session.get(Pet, pet_id)
            if not pet:
                return {'error': 'Pet not found'}, 404
            if not can_modify_pet(user, pet):
                return {'error': 'Not authorized to delete this pet'}, 403

            if request.args.get('hardDelete') == 'true' and can_hard_delete(user):
                db.session.delete(pet)
                logger.info(f"Pet {pet_id} permanently deleted by user {user.id}")
            else:
                pet.status = PetStatus.INACTIVE
            db.session.commit()
            return {'success': True}, 200
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting pet {pet_id}: {str(e)}")
            return {'error': 'Failed to delete pet'}, 500
