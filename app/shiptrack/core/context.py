from dataclasses import dataclass, field

from app.shiptrack.core.roles import normalize_roles


@dataclass(frozen=True)
class RequestContext:
    user_id: str | None
    roles: frozenset[str] = field(default_factory=frozenset)
    trace_id: str = ""

    def has_any_role(self, allowed) -> bool:
        return bool(self.roles.intersection(allowed))


def build_request_context(*, user_id: str | None, roles, trace_id: str) -> RequestContext:
    return RequestContext(user_id=user_id, roles=normalize_roles(roles), trace_id=trace_id)
