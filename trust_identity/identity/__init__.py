from trust_identity.errors import (
    IdentityError,
    DecodeError,
    SizeError,
    MismatchError,
    UnsupportedTargetError,
    InvalidIdentityError,
    KeygenError,
    )

from .config import (
    APP_ID_SIZE,
    APP_SECRET_SIZE,
    TenantConfig,
    RawTenantConfig,
    derive_app_id,
    validate_config,
    new_tenant_config,
    )
from .models import (
    Target,
    PublicIdentity,
    Identity,
    PublicProvisionalIdentity,
    ProvisionalIdentity,
    AnyPublicIdentity,
    )
from .protocol import (
    PROVISIONAL_TARGETS,
    LEGACY_PROVISIONAL_TARGETS,
    hash_user_id,
    create_user_secret,
    check_user_secret,
    build_identity,
    build_provisional_identity,
    derive_public,
    upgrade,
    create_identity,
    create_provisional_identity,
    get_public_identity,
    upgrade_identity,
    new_identity,
    new_provisional_identity,
    get_public,
    )
