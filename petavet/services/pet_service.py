# Pet service module for business logic
from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from petavet.models.pet_model import Pet, PetStatus
from petavet.utils.role_utils import has_permission, is_admin
from petavet.utils.time_utils import clinic_today


def calculate_age(birth_date, today=None):
    """Whole years since birth, None when unknown or in the future."""
    if not birth_date:
        return None
    today = today or clinic_today()
    if birth_date > today:
        return None
    return relativedelta(today, birth_date).years


def parse_iso_date(value):
    if not value:
        return None
    return isoparse(str(value)).date()


def format_pet(pet):
    return {
        'id': str(pet.id),
        'ownerId': str(pet.owner_id),
        'ownerName': pet.owner.full_name if pet.owner else None,
        'name': pet.name,
        'species': pet.species,
        'breed': pet.breed,
        'dateOfBirth': pet.birth_date.isoformat() if pet.birth_date else None,
        'age': calculate_age(pet.birth_date),
        'gender': pet.gender,
        'weight': float(pet.weight) if pet.weight is not None else None,
        'color': pet.color,
        'microchipId': pet.microchip_id,
        'medicalConditions': pet.medical_conditions,
        'allergies': pet.allergies,
        'medications': pet.medications,
        'notes': pet.notes,
        'profileImage': pet.profile_image,
        'status': pet.status.value,
        'createdAt': pet.created_at.isoformat() if pet.created_at else None
    }


def can_view_pet(user, pet):
    return pet.owner_id == user.id or has_permission(user, 'read:all-pets')


def can_modify_pet(user, pet):
    if pet.owner_id == user.id:
        return has_permission(user, 'write:pets')
    return has_permission(user, 'write:any-pet')


def can_hard_delete(user):
    return is_admin(user.role)


def search_pets(term, include_inactive=False, owner_id=None):
    query = Pet.query
    if owner_id is not None:
        query = query.filter(Pet.owner_id == owner_id)
    if not include_inactive:
        query = query.filter(Pet.status == PetStatus.ACTIVE)
    if term:
        pattern = f'%{term}%'
        query = query.filter(Pet.name.ilike(pattern) | Pet.species.ilike(pattern)
                             | Pet.breed.ilike(pattern) | Pet.microchip_id.ilike(pattern))
    return query.order_by(Pet.name.asc()).all()
