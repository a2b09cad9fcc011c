"""
Access policy for patient-scoped data.

Every component that reads or writes a patient's records goes through these
functions, so the rule lives in one place:

- doctors and admins may access any patient's data
- a patient may access only the records whose owner is their own user
- clinical records may be modified by the issuing doctor or an admin
"""
from apps.authz.models import RoleChoices
from apps.core.exceptions import AuthorizationError

STAFF_ROLES = frozenset({RoleChoices.DOCTOR, RoleChoices.ADMIN})


def can_access(actor_role, actor_id, resource_owner_id):
    """Whether an actor may read/write data owned by ``resource_owner_id``."""
    if actor_role in STAFF_ROLES:
        return True
    if actor_role == RoleChoices.PATIENT:
        return (
            actor_id is not None
            and resource_owner_id is not None
            and str(actor_id) == str(resource_owner_id)
        )
    return False


def resource_owner_id(patient):
    """User id owning a patient's records; None when there is no patient."""
    if patient is None:
        return None
    return patient.user_id


def can_modify_record(actor_role, actor_id, issuer_id):
    """Admins may modify any clinical record, others only their own."""
    if actor_role == RoleChoices.ADMIN:
        return True
    return issuer_id is not None and str(actor_id) == str(issuer_id)


def is_staff_role(actor):
    return getattr(actor, 'role', None) in STAFF_ROLES


def ensure_can_access(actor, patient):
    if not can_access(getattr(actor, 'role', None), getattr(actor, 'pk', None), resource_owner_id(patient)):
        raise AuthorizationError()


def ensure_can_modify(actor, issuer_id):
    if not can_modify_record(getattr(actor, 'role', None), getattr(actor, 'pk', None), issuer_id):
        raise AuthorizationError('Not authorized to modify this record')


def ensure_role(actor, *roles):
    if getattr(actor, 'role', None) not in roles:
        raise AuthorizationError()


def ensure_can_address_patient(actor, patient_id):
    """
    Reject a patient-role actor asking for any public id but their own.

    Runs before the lookup, so an unknown id and someone else's id both
    answer 403 and existence is never revealed.
    """
    if getattr(actor, 'role', None) == RoleChoices.PATIENT:
        if patient_id != getattr(actor, 'patient_identifier', None):
            raise AuthorizationError()
