from .auth import User, SessionToken
from .destinations import Destination
from .gatepass import GatePass, GatePassItem, PassSequence

__all__ = [
    'User', 'SessionToken',
    'Destination',
    'GatePass', 'GatePassItem', 'PassSequence',
]
