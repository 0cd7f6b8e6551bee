from .bases import CanonicalModel
from .calls import BundleHandle, Call, CallRequest, DataSuffix, PaymasterService, RequestCapabilities
from .status import BundleOutcome, BundleStatus, CallsStatus, UnsupportedStatusPolicy, classify_status
from .versions import ProtocolVersion

__all__ = [
    "CanonicalModel",
    "BundleHandle",
    "Call",
    "CallRequest",
    "DataSuffix",
    "PaymasterService",
    "RequestCapabilities",
    "BundleOutcome",
    "BundleStatus",
    "CallsStatus",
    "UnsupportedStatusPolicy",
    "classify_status",
    "ProtocolVersion",
]
