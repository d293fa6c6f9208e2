"""Job-scoped state objects."""

from pydantic import BaseModel, ConfigDict, Field


class JobState(BaseModel):
    """Base class for job state.

    Job state is a Pydantic model created fresh for every execution attempt and
    discarded when the job ends. Values written from inside memoized steps must be
    re-applied outside the step so a replayed execution rebuilds the same state.

    Example:
        class MyState(JobState):
            counter: int = 0

        @job(id="count", state_schema=MyState)
        async def count(ctx: JobContext, payload: dict):
            ctx.state.counter += 1
    """

    model_config = ConfigDict(validate_assignment=True)


class RunState(JobState):
    """Shared state of one code-generation run.

    Attributes:
        summary: Completion summary; empty until the agent emits a task summary
        files: Every file written during the run, keyed by path
    """

    summary: str = ""
    files: dict[str, str] = Field(default_factory=dict)

    def merge_files(self, files: dict[str, str]) -> None:
        """Merge written files into the state, last write wins per path.

        Existing paths that are not part of ``files`` are kept.
        """
        if not files:
            return
        merged = dict(self.files)
        merged.update(files)
        self.files = merged
