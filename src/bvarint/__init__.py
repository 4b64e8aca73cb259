from .codec import (
    LENGTH_CLASSES,
    MAX_ENCODED_LENGTH,
    MAX_VALUE,
    LengthClass,
    TruncatedInput,
    decode_bvarint,
    decode_bvarints,
    encode_bvarint,
    encode_bvarints,
    encoded_length,
    iter_bvarints,
    length_class_for_lead_byte,
    length_class_for_value,
    read_bvarint,
    write_bvarint,
)
from .keys import pack_key, unpack_key, key_range
from .validation import CheckFailure, CheckReport, LengthClassTableError, run_checks
