"""External type signatures (RBS) for documented methods."""

from yardgen.types.provider import (
    RestKeywords,
    RestPositional,
    Signature,
    SignatureAdapter,
    SignatureProvider,
)
from yardgen.types.rbs import RBSSignatureProvider, to_yard

__all__ = [
    "RBSSignatureProvider",
    "RestKeywords",
    "RestPositional",
    "Signature",
    "SignatureAdapter",
    "SignatureProvider",
    "to_yard",
]
