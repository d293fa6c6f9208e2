"""Network of agents driven by a router until it converges or runs out of iterations."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel, Field

from ..core.context import JobContext
from ..features.tracing import get_tracer
from .agent import Agent

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10


class NetworkStatus(str, Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class Continue:
    """Router decision: run ``agent`` for another turn."""

    agent: Agent


@dataclass
class Done:
    """Router decision: the network is finished."""


RouterDecision = Continue | Done
Router = Callable[[JobContext, int], RouterDecision]


def summary_router(agent: Agent) -> Router:
    """Route to ``agent`` until the job state has a summary."""

    def route(ctx: JobContext, iteration: int) -> RouterDecision:
        if ctx.state is not None and ctx.state.summary:
            return Done()
        return Continue(agent)

    return route


class NetworkResult(BaseModel):
    """Terminal outcome of a network run.

    Attributes:
        status: CONVERGED or EXHAUSTED
        iterations: Number of agent turns that ran
        messages: Full history, input messages included
        state: Snapshot of the job state at termination
    """

    status: NetworkStatus
    iterations: int
    messages: list[dict[str, Any]] = Field(default_factory=list)
    state: dict[str, Any] | None = None


class Network:
    """
    Repeatedly runs agent turns chosen by ``router`` against a shared history.

    Each pass asks the router first: ``Done`` ends the run as CONVERGED. Only then is the
    iteration ceiling checked, ending the run as EXHAUSTED. A completion produced on the
    last allowed iteration therefore still converges.
    """

    def __init__(
        self,
        id: str,
        agents: list[Agent],
        router: Router,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        if max_iterations < 0:
            raise ValueError("max_iterations must not be negative")
        self.id = id
        self.agents = {agent.id: agent for agent in agents}
        self.router = router
        self.max_iterations = max_iterations

    async def run(self, ctx: JobContext, messages: list[dict[str, Any]]) -> NetworkResult:
        """Run the network to a terminal state.

        Agent turns that end with an error (such as exceeding the tool call budget) are
        logged and count as an iteration; the loop continues.
        """
        history = list(messages)
        iteration = 0
        status = NetworkStatus.RUNNING

        tracer = get_tracer()
        with tracer.start_as_current_span(
            name=f"network.{self.id}",
            attributes={
                "network.id": self.id,
                "network.execution_id": ctx.execution_id,
                "network.max_iterations": self.max_iterations,
            },
        ) as span:
            while status == NetworkStatus.RUNNING:
                decision = self.router(ctx, iteration)
                if isinstance(decision, Done):
                    status = NetworkStatus.CONVERGED
                    break
                if iteration >= self.max_iterations:
                    status = NetworkStatus.EXHAUSTED
                    break

                agent = decision.agent
                if agent.id not in self.agents:
                    raise ValueError(f"Router chose agent '{agent.id}' outside network '{self.id}'")

                turn = await agent.run_turn(
                    ctx, history, step_key_prefix=f"{self.id}:{iteration}:{agent.id}"
                )
                history.extend(turn.messages)
                if turn.error:
                    logger.warning(
                        "Iteration %d of network %s ended with an error: %s",
                        iteration,
                        self.id,
                        turn.error,
                    )
                iteration += 1

            span.set_attribute("network.status", status.value)
            span.set_attribute("network.iterations", iteration)
            span.set_status(Status(StatusCode.OK))

        logger.info(
            "Network %s finished as %s after %d iterations", self.id, status.value, iteration
        )
        return NetworkResult(
            status=status,
            iterations=iteration,
            messages=history,
            state=ctx.state.model_dump() if ctx.state is not None else None,
        )
