"""
Security Pipeline
=================
Ordered security stages with early exit.

Each stage is an async callable taking a RequestContext and returning a
StageResult: ``CONTINUE`` hands the request to the next stage, ``TERMINATE``
ends the chain with a response. When every stage continues, the request is
dispatched to the route.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

import structlog
from starlette.responses import Response

from ..errors import SecurityError, error_response
from ..metrics import record_rejection
from .context import RequestContext

logger = structlog.get_logger(__name__)


class StageOutcome(str, Enum):
    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class StageResult:
    """Tagged result of one stage: continue, or terminate with a response."""
    outcome: StageOutcome
    response: Optional[Response] = None

    @property
    def terminated(self) -> bool:
        return self.outcome == StageOutcome.TERMINATE

    @classmethod
    def proceed(cls) -> "StageResult":
        return _CONTINUE

    @classmethod
    def terminate(cls, response: Response) -> "StageResult":
        return cls(outcome=StageOutcome.TERMINATE, response=response)

    @classmethod
    def reject(cls, error: SecurityError) -> "StageResult":
        """Terminate with the client-facing response for a security error."""
        return cls.terminate(error_response(error))


_CONTINUE = StageResult(outcome=StageOutcome.CONTINUE)

Stage = Callable[[RequestContext], Awaitable[StageResult]]


def stage_name(stage: Stage) -> str:
    return getattr(stage, "name", None) or getattr(stage, "__name__", type(stage).__name__)


class SecurityPipeline:
    """Runs stages in a fixed order, stopping at the first termination."""

    def __init__(self, stages: Sequence[Stage]):
        self.stages: List[Stage] = list(stages)

    @property
    def stage_names(self) -> List[str]:
        return [stage_name(stage) for stage in self.stages]

    async def run(self, ctx: RequestContext) -> Optional[Response]:
        """
        Run every stage for a request.

        Returns:
            The terminal response, or None when the request may be dispatched
        """
        for stage in self.stages:
            result = await stage(ctx)
            if result.terminated:
                record_rejection(stage_name(stage), result.response.status_code)
                logger.info(
                    "security_pipeline_terminated",
                    stage=stage_name(stage),
                    status_code=result.response.status_code,
                    path=ctx.path,
                    method=ctx.method,
                    ip=ctx.client_ip,
                )
                self.apply_response_state(ctx, result.response)
                return result.response
        return None

    @staticmethod
    def apply_response_state(ctx: RequestContext, response: Response) -> None:
        """Copy stage headers and cookies onto a response without overriding the route's own."""
        for name, value in ctx.response_headers.items():
            response.headers.setdefault(name, value)

        if ctx.response_cookies:
            existing = " ".join(response.headers.getlist("set-cookie"))
            for name, options in ctx.response_cookies.items():
                if f"{name}=" not in existing:
                    response.set_cookie(name, **options)
