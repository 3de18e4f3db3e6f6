from .hashing import (
    HASH_SIZE,
    generichash,
    )
from .keys import (
    SIGNATURE_PUBLIC_KEY_SIZE,
    SIGNATURE_PRIVATE_KEY_SIZE,
    SIGNATURE_SIZE,
    ENCRYPTION_PUBLIC_KEY_SIZE,
    ENCRYPTION_PRIVATE_KEY_SIZE,
    b64_encode,
    b64_decode,
    generate_signature_keypair,
    generate_encryption_keypair,
    signature_public_key,
    encryption_public_key,
    sign,
    verify,
    )
