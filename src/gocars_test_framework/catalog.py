"""
Catalog of test suites known to the GoCars execution engine.

Each known suite type declares the closed set of parameters it accepts.
Suites outside the catalog keep an opaque parameter map.
"""

from typing import Dict, List, Tuple, Type, Union

from .config import TestSuiteConfig

ParamType = Union[Type, Tuple[Type, ...]]

_NUMBER = (int, float)

PARAMETER_SCHEMAS: Dict[str, Dict[str, ParamType]] = {
    "firebase-auth": {"quickMode": bool, "testAccounts": int},
    "firebase-firestore": {"collections": list, "quickMode": bool},
    "firebase-fcm": {"topics": list},
    "firebase-full": {"quickMode": bool},
    "websocket-connection": {"reconnectAttempts": int, "pingInterval": _NUMBER},
    "websocket-messaging": {"messageCount": int, "payloadSize": int},
    "websocket-full": {"reconnectAttempts": int, "messageCount": int},
    "basic-ui": {"skipVisualTests": bool},
    "ui-components": {"skipVisualTests": bool, "viewports": list},
    "ui-full": {"skipVisualTests": bool, "viewports": list},
    "booking-workflows": {"scenarios": list, "includePayments": bool},
    "ai-features": {"models": list},
    "load-testing": {"maxUsers": int, "rampUpTime": _NUMBER, "sustainTime": _NUMBER},
    "stress-testing": {"maxUsers": int, "rampUpTime": _NUMBER},
}


def available_test_suites() -> List[TestSuiteConfig]:
    """Return the suites the execution engine can run, in default priority order."""
    return [
        TestSuiteConfig(id="firebase-auth", name="Firebase Authentication", priority=1),
        TestSuiteConfig(
            id="firebase-firestore",
            name="Firebase Firestore",
            priority=2,
            dependencies=["firebase-auth"],
        ),
        TestSuiteConfig(
            id="firebase-fcm",
            name="Firebase Cloud Messaging",
            priority=3,
            dependencies=["firebase-auth"],
        ),
        TestSuiteConfig(
            id="websocket-connection",
            name="WebSocket Connection",
            priority=4,
            dependencies=["firebase-auth"],
        ),
        TestSuiteConfig(
            id="websocket-messaging",
            name="WebSocket Messaging",
            priority=5,
            dependencies=["websocket-connection"],
        ),
        TestSuiteConfig(id="ui-components", name="UI Components", priority=6),
        TestSuiteConfig(
            id="booking-workflows",
            name="Booking Workflows",
            priority=7,
            dependencies=["firebase-auth", "firebase-firestore", "websocket-messaging"],
        ),
        TestSuiteConfig(
            id="ai-features",
            name="AI Features",
            priority=8,
            dependencies=["firebase-auth", "firebase-firestore"],
        ),
    ]
