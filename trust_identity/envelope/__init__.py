from .codec import (
    Record,
    b64_json_encode,
    b64_json_decode,
    )
