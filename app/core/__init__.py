"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (tickets, memberships,
shop, fundraising, payments). Nothing in here knows about matches,
passes or money.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - NotFoundError: Resource not found
    - ConflictError: State conflicts (duplicates, concurrent updates)

Helpers (import from core.helpers):
    - generate_token: Cryptographically secure token generation
    - hash_string: String hashing

Views (import from core.views):
    - health_check: Liveness endpoint for load balancers
"""
