"""Core domain models (events, policies, stacks)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================
# EVENTS
# ============================================

class EventKind(Enum):
    """Inbound source-control event kinds."""

    STATUS_CHANGE = "status-change"
    CHANGE_REQUEST_CLOSED = "change-request-closed"


@dataclass(frozen=True)
class Event:
    """Inbound notification, built once per webhook delivery."""

    kind: EventKind
    branch_name: str
    repository: str
    issuer_key: Optional[str] = None  # e.g. "continuous-integration/travis-ci/pr"
    state: Optional[str] = None  # "success", "failure", "pending", "error"

    is_from_self: bool = False

    # Notification targeting only
    commit_sha: Optional[str] = None
    pull_request_number: Optional[int] = None

    @property
    def label(self) -> str:
        """Log prefix for this event."""
        if self.kind == EventKind.STATUS_CHANGE:
            return "status"
        return "pull_request.closed"


# ============================================
# CONFIGURATION (per repository)
# ============================================

@dataclass(frozen=True)
class BranchPolicy:
    """Branch whitelist / blacklist. Entries are literals or /regex/."""

    only: Optional[List[str]] = None
    ignore: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["BranchPolicy"]:
        if not data:
            return None
        return cls(
            only=_string_list(data.get("only")),
            ignore=_string_list(data.get("ignore")),
        )


@dataclass(frozen=True)
class TriggerPolicy:
    """Rules deciding whether a status change starts a deployment."""

    expected_state: Optional[str] = None
    allowed_issuers: List[str] = field(default_factory=list)
    branches: Optional[BranchPolicy] = None


@dataclass(frozen=True)
class NotifyPolicy:
    """Which successful actions produce a comment."""

    on_create: bool = False
    on_update: bool = False
    on_delete: bool = False


@dataclass(frozen=True)
class StackTemplate:
    """Blueprint used when creating a new stack."""

    image_repo: str
    inner_port: int
    outer_port_range_min: int
    template: Dict[str, Any] = field(default_factory=dict)

    @property
    def service_name(self) -> Optional[str]:
        """Name grouping services across stacks for port collisions."""
        return self.template.get("name")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StackTemplate":
        return cls(
            image_repo=_pick(data, "imageRepo", "image_repo"),
            inner_port=int(_pick(data, "innerPort", "inner_port")),
            outer_port_range_min=int(
                _pick(data, "outerPortRangeMin", "outer_port_range_min")
            ),
            template=dict(data.get("template") or {}),
        )


@dataclass(frozen=True)
class BotConfig:
    """Repository configuration loaded for every event."""

    trigger: TriggerPolicy
    notify: NotifyPolicy
    stack: Optional[StackTemplate] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BotConfig":
        """
        Build config from the parsed YAML document.

        Accepts the camelCase keys of the config file as well as snake_case.
        Missing sections fall back to defaults; nothing else is validated.
        """
        data = data or {}
        trigger = data.get("trigger") or {}
        notify = data.get("notify") or {}
        stack = data.get("stack")

        branches = data.get("branches")
        if branches is None:
            branches = trigger.get("branches")

        return cls(
            trigger=TriggerPolicy(
                expected_state=trigger.get("status"),
                allowed_issuers=_string_list(trigger.get("issuers")) or [],
                branches=BranchPolicy.from_dict(branches),
            ),
            notify=NotifyPolicy(
                on_create=bool(_pick(notify, "onCreate", "on_create", default=False)),
                on_update=bool(_pick(notify, "onUpdate", "on_update", default=False)),
                on_delete=bool(_pick(notify, "onDelete", "on_delete", default=False)),
            ),
            stack=StackTemplate.from_dict(stack) if stack else None,
        )


# ============================================
# REMOTE STACKS
# ============================================

class StackState(Enum):
    """Remote stack state, normalized from the API's free-form text."""

    NOT_RUNNING = "not running"
    STARTING = "starting"
    RUNNING = "running"
    PARTLY_RUNNING = "partly running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    REDEPLOYING = "redeploying"
    TERMINATING = "terminating"
    TERMINATED = "terminated"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "StackState":
        """Case-insensitive; '-' and '_' are treated as spaces."""
        if not raw:
            return cls.UNKNOWN
        key = " ".join(raw.strip().lower().replace("-", " ").replace("_", " ").split())
        for state in cls:
            if state.value == key:
                return state
        return cls.UNKNOWN

    @property
    def is_active(self) -> bool:
        return self not in (StackState.TERMINATING, StackState.TERMINATED)


@dataclass(frozen=True)
class ContainerPort:
    """Port mapping of a service container."""

    inner_port: Optional[int]
    outer_port: Optional[int]
    endpoint_uri: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ContainerPort":
        return cls(
            inner_port=data.get("inner_port"),
            outer_port=data.get("outer_port"),
            endpoint_uri=data.get("endpoint_uri"),
        )


@dataclass(frozen=True)
class Service:
    """Service belonging to a stack."""

    name: str
    container_ports: List[ContainerPort] = field(default_factory=list)
    resource_uri: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Service":
        return cls(
            name=data.get("name", ""),
            container_ports=[
                ContainerPort.from_api(p) for p in data.get("container_ports") or []
            ],
            resource_uri=data.get("resource_uri"),
        )


@dataclass(frozen=True)
class Stack:
    """Remote deployment unit. `services` holds service resource URIs."""

    id: str
    name: str
    state: StackState
    raw_state: str = ""
    services: List[str] = field(default_factory=list)
    resource_uri: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Stack":
        raw_state = data.get("state") or ""
        return cls(
            id=data["uuid"],
            name=data.get("name", ""),
            state=StackState.parse(raw_state),
            raw_state=raw_state,
            services=list(data.get("services") or []),
            resource_uri=data.get("resource_uri"),
        )


# ============================================
# HELPERS
# ============================================

def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


_MISSING = object()


def _pick(data: Dict[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if default is not _MISSING:
        return default
    raise KeyError(f"Missing '{keys[0]}' in configuration")
