"""Release pipeline.

Stages run on ``relcore.release.fsm``; each handler returns the next
``PipelineRun`` or a ``ReleaseError``. Every mutating stage that succeeds
appends a compensating ``RollbackAction`` to the run's ``PipelineState``;
on failure those actions run last-in-first-out.

A failed push is the one failure that is not rolled back: the release
commit and tag are kept locally so the push can be retried by hand.
"""

from __future__ import annotations

import sys
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field, replace
from functools import partial
from pathlib import Path

from relcore.core.config import ReleaseConfig
from relcore.core.result import Err, Ok, Result
from relcore.output.console import ConsoleProtocol, PreviewConsole, Style
from relcore.output.errors import print_release_error
from relcore.release.contracts import Builder, Bumper, Confirm, VcsProtocol
from relcore.release.environment import validate_environment
from relcore.release.errors import (
    EnvironmentInvalid,
    PushFailed,
    ReleaseError,
    VcsOperationFailed,
)
from relcore.release.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from relcore.release.model import (
    STEP_BUILD,
    STEP_COMMIT_TAG,
    STEP_PUSH,
    STEP_VERSION_BUMP,
    PipelineStage,
    PipelineState,
    ReleaseOutcome,
    ReleasePlan,
    ReleaseRequest,
    RollbackAction,
)
from relcore.version.rewrite import apply_version
from relcore.version.semver import bump as semver_bump
from relcore.version.semver import parse_custom
from relcore.version.validator import validate


def _running_python() -> tuple[int, int]:
    return (sys.version_info.major, sys.version_info.minor)


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything a release run talks to."""

    root: Path
    config: ReleaseConfig
    console: ConsoleProtocol
    repo: VcsProtocol
    builder: Builder | None
    confirm: Confirm
    bumper: Bumper | None = semver_bump
    python_version: tuple[int, int] = field(default_factory=_running_python)


@dataclass(frozen=True, slots=True)
class PipelineRun:
    stage: PipelineStage
    request: ReleaseRequest
    plan: ReleasePlan | None = None
    state: PipelineState = field(default_factory=PipelineState)

    def at(self, stage: PipelineStage, **changes: object) -> PipelineRun:
        return replace(self, stage=stage, **changes)  # type: ignore[arg-type]


type Outcome = Result[StepOutcome[PipelineRun], ReleaseError]


def _require_plan(run: PipelineRun) -> ReleasePlan:
    if run.plan is None:
        raise RuntimeError(f"stage {run.stage.value} reached without a release plan")
    return run.plan


# -----------------------------------------------------------------------------
# Stages
# -----------------------------------------------------------------------------


def _check_environment(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    checked = validate_environment(
        repo=ctx.repo,
        builder=ctx.builder,
        bumper=ctx.bumper,
        python_version=ctx.python_version,
        min_python=ctx.config.min_python,
        force=run.request.force,
        console=ctx.console,
    )
    if isinstance(checked, Err):
        return checked
    return Ok(advance(run.at(PipelineStage.ENVIRONMENT_VALIDATED)))


def prepare_versions(ctx: ReleaseContext, request: ReleaseRequest) -> Result[ReleasePlan, ReleaseError]:
    """Read the current version and compute the next one. Touches nothing."""
    ctx.console.step("preparing versions")

    current = validate(root=ctx.root, registry=ctx.config.registry, console=ctx.console)
    if isinstance(current, Err):
        return current

    if request.kind == "custom":
        new = parse_custom(request.custom_version or "")
    elif ctx.bumper is None:
        return Err(EnvironmentInvalid(reason="no version bumper configured"))
    else:
        new = ctx.bumper(current.value, request.kind)
    if isinstance(new, Err):
        return new

    plan = ReleasePlan(
        kind=request.kind,
        custom_version=request.custom_version,
        current_version=current.value,
        new_version=new.value,
        dry_run=request.dry_run,
        force=request.force,
    )

    if ctx.repo.tag_exists(plan.tag):
        return Err(
            VcsOperationFailed(
                operation="tag",
                detail=f"tag {plan.tag} already exists",
                hint="Pick another version, or delete the stale tag first.",
            )
        )

    ctx.console.print(f"current version: {plan.current_version}")
    ctx.console.print(f"new version:     {plan.new_version}")
    return Ok(plan)


def _prepare(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    planned = prepare_versions(ctx, run.request)
    if isinstance(planned, Err):
        return planned
    return Ok(advance(run.at(PipelineStage.VERSIONS_PREPARED, plan=planned.value)))


def _confirm(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    plan = _require_plan(run)
    if plan.dry_run or plan.force:
        reason = "dry run" if plan.dry_run else "--force"
        ctx.console.info(f"confirmation skipped ({reason})")
        return Ok(advance(run.at(PipelineStage.CONFIRMED)))

    ctx.console.header("Release summary")
    for label, value in plan.summary():
        ctx.console.print(f"  {label:<16} {value}")

    if not ctx.confirm(plan):
        ctx.console.warning("release cancelled")
        return Ok(advance(run.at(PipelineStage.CANCELLED)))
    return Ok(advance(run.at(PipelineStage.CONFIRMED)))


def _bump(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    plan = _require_plan(run)
    ctx.console.step(f"updating version files to {plan.new_version}")

    if plan.dry_run:
        for entry in ctx.config.registry:
            ctx.console.print(f"would update {entry.path}")
        ctx.console.print("would update @version headers", Style.DIM)
        return Ok(advance(run.at(PipelineStage.VERSION_BUMPED)))

    applied = apply_version(
        root=ctx.root,
        registry=ctx.config.registry,
        version=plan.new_version,
        headers=ctx.config.headers,
        console=ctx.console,
    )
    if isinstance(applied, Err):
        return applied

    restore_point = applied.value.restore_point

    def undo() -> Result[None, str]:
        failures = restore_point.restore()
        if failures:
            return Err("; ".join(f"{f.path}: {f.reason}" for f in failures))
        return Ok(None)

    state = run.state.complete(
        STEP_VERSION_BUMP,
        undo=RollbackAction(
            step=STEP_VERSION_BUMP,
            description=f"restore {len(restore_point)} version file(s)",
            undo=undo,
        ),
    )
    return Ok(advance(run.at(PipelineStage.VERSION_BUMPED, state=state)))


def _build(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    ctx.console.step("building")
    builder = ctx.builder
    if builder is None:
        return Err(EnvironmentInvalid(reason="no builder configured"))

    if _require_plan(run).dry_run:
        ctx.console.print(f"would run: {builder.describe()}")
        return Ok(advance(run.at(PipelineStage.BUILT)))

    built = builder.build()
    if isinstance(built, Err):
        return built

    state = run.state.complete(STEP_BUILD).with_artifact(built.value)
    return Ok(advance(run.at(PipelineStage.BUILT, state=state)))


def _commit_and_tag(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    plan = _require_plan(run)
    git = ctx.config.git
    commit_message = git.format_commit_message(plan.new_version)
    tag_message = git.format_tag_message(plan.new_version)
    ctx.console.step(f"committing and tagging {plan.tag}")

    if plan.dry_run:
        ctx.console.print("would run: git add -A")
        ctx.console.print(f'would run: git commit -m "{commit_message}"')
        ctx.console.print(f'would run: git tag -a {plan.tag} -m "{tag_message}"')
        return Ok(advance(run.at(PipelineStage.COMMITTED)))

    repo = ctx.repo
    added = repo.add_all()
    if isinstance(added, Err):
        return Err(VcsOperationFailed(operation="add", detail=added.error.message))

    committed = repo.commit(commit_message)
    if isinstance(committed, Err):
        return Err(
            VcsOperationFailed(
                operation="commit",
                detail=committed.error.message,
                hint="Changes may still be staged; run `git reset` to unstage them.",
            )
        )

    tagged = repo.create_tag(plan.tag, message=tag_message)
    if isinstance(tagged, Err):
        reset = repo.reset_hard("HEAD~1")
        hint = None
        if isinstance(reset, Err):
            hint = "The release commit is still in place; undo it with `git reset --hard HEAD~1`."
        else:
            ctx.console.warning("release commit undone")
        return Err(VcsOperationFailed(operation="tag", detail=tagged.error.message, hint=hint))

    ctx.console.success(f"committed and tagged {plan.tag}")

    def undo() -> Result[None, str]:
        problems: list[str] = []
        deleted = repo.delete_tag(plan.tag)
        if isinstance(deleted, Err):
            problems.append(f"delete tag {plan.tag}: {deleted.error.message}")
        reset = repo.reset_hard("HEAD~1")
        if isinstance(reset, Err):
            problems.append(f"reset --hard HEAD~1: {reset.error.message}")
        if problems:
            return Err("; ".join(problems))
        return Ok(None)

    state = run.state.complete(
        STEP_COMMIT_TAG,
        undo=RollbackAction(
            step=STEP_COMMIT_TAG,
            description=f"delete tag {plan.tag} and reset --hard HEAD~1",
            undo=undo,
        ),
    )
    return Ok(advance(run.at(PipelineStage.COMMITTED, state=state)))


def _push(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    plan = _require_plan(run)
    remote = ctx.config.git.remote
    ctx.console.step(f"pushing to {remote}")

    branch = ctx.config.git.branch or ctx.repo.current_branch()
    if plan.dry_run:
        ctx.console.print(f"would run: git push {remote} {branch or '<current branch>'}")
        ctx.console.print(f"would run: git push {remote} {plan.tag}")
        return Ok(advance(run.at(PipelineStage.PUSHED)))

    if branch is None:
        return Err(
            PushFailed(
                target="branch",
                detail="HEAD is detached; no branch to push",
                hint="Set [git].branch in release.toml.",
            )
        )

    pushed = ctx.repo.push(remote, branch)
    if isinstance(pushed, Err):
        return Err(PushFailed(target=branch, detail=pushed.error.message))

    pushed = ctx.repo.push(remote, plan.tag)
    if isinstance(pushed, Err):
        return Err(PushFailed(target=plan.tag, detail=pushed.error.message, pushed=(branch,)))

    ctx.console.success(f"pushed {branch} and {plan.tag} to {remote}")
    state = run.state.complete(STEP_PUSH)
    return Ok(advance(run.at(PipelineStage.PUSHED, state=state)))


def _finish(ctx: ReleaseContext, run: PipelineRun) -> Outcome:
    plan = _require_plan(run)
    ctx.console.newline()
    if plan.dry_run:
        ctx.console.success(f"dry run complete: {plan.current_version} -> {plan.new_version}")
        ctx.console.print("nothing was changed", Style.DIM)
        return Ok(advance(run.at(PipelineStage.DONE)))

    ctx.console.success(f"released {plan.new_version}")
    ctx.console.header("Next steps")
    if run.state.artifact is not None:
        artifact = run.state.artifact
        try:
            shown = artifact.relative_to(ctx.root)
        except ValueError:
            shown = artifact
        ctx.console.print(f"  publish the artifact: {shown}")
    ctx.console.print(f"  draft release notes for {plan.tag}")
    return Ok(advance(run.at(PipelineStage.DONE)))


def _handlers(ctx: ReleaseContext) -> Mapping[Hashable, StepHandler[PipelineRun]]:
    def stop(_: PipelineRun) -> Outcome:
        return Ok(FINISH)

    return {
        PipelineStage.IDLE: partial(_check_environment, ctx),
        PipelineStage.ENVIRONMENT_VALIDATED: partial(_prepare, ctx),
        PipelineStage.VERSIONS_PREPARED: partial(_confirm, ctx),
        PipelineStage.CONFIRMED: partial(_bump, ctx),
        PipelineStage.VERSION_BUMPED: partial(_build, ctx),
        PipelineStage.BUILT: partial(_commit_and_tag, ctx),
        PipelineStage.COMMITTED: partial(_push, ctx),
        PipelineStage.PUSHED: partial(_finish, ctx),
        PipelineStage.DONE: stop,
        PipelineStage.CANCELLED: stop,
    }


# -----------------------------------------------------------------------------
# Rollback
# -----------------------------------------------------------------------------


def rollback(state: PipelineState, console: ConsoleProtocol) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Run every registered undo, newest first.

    A failing undo is reported and the sweep continues. Returns the
    descriptions that succeeded and the failure messages.
    """
    done: list[str] = []
    failed: list[str] = []
    if not state.rollback:
        return ((), ())

    console.warning(f"rolling back {len(state.rollback)} step(s)")
    for action in reversed(state.rollback):
        try:
            result = action.undo()
        except Exception as e:
            result = Err(f"{type(e).__name__}: {e}")
        if isinstance(result, Err):
            console.error(f"rollback of {action.step} failed: {result.error}")
            failed.append(f"{action.step}: {result.error}")
        else:
            console.print(f"  rolled back {action.step}: {action.description}", Style.DIM)
            done.append(action.description)
    return (tuple(done), tuple(failed))


def _push_guidance(
    plan: ReleasePlan | None,
    remote: str,
    *,
    branch: str,
    branch_pushed: bool,
) -> tuple[str, ...]:
    tag = plan.tag if plan is not None else "<tag>"
    steps = [f"the release commit and {tag} are kept locally"]
    if branch_pushed:
        steps.append(f"retry the tag: git push {remote} {tag}")
    else:
        steps.append(f"retry: git push {remote} {branch} && git push {remote} {tag}")
    steps.append(f"or abandon: git tag -d {tag} && git reset --hard HEAD~1")
    return tuple(steps)


def _print_manual_steps(console: ConsoleProtocol, steps: tuple[str, ...]) -> None:
    console.header("Manual follow-up")
    for line in steps:
        console.print(f"  {line}")


def _recover(ctx: ReleaseContext, run: PipelineRun) -> None:
    """Clean up after an exception escaped the stage that follows ``run``."""
    match run.stage:
        case PipelineStage.COMMITTED:
            branch = ctx.config.git.branch or ctx.repo.current_branch() or "<branch>"
            steps = _push_guidance(run.plan, ctx.config.git.remote, branch=branch, branch_pushed=False)
            _print_manual_steps(ctx.console, steps)
        case PipelineStage.PUSHED | PipelineStage.DONE:
            pass
        case _:
            rollback(run.state, ctx.console)


def _fail(
    ctx: ReleaseContext,
    run: PipelineRun,
    error: ReleaseError,
) -> ReleaseOutcome:
    print_release_error(error, ctx.console)

    if isinstance(error, PushFailed):
        manual = _push_guidance(
            run.plan,
            ctx.config.git.remote,
            branch=error.pushed[0] if error.pushed else error.target,
            branch_pushed=bool(error.pushed),
        )
        _print_manual_steps(ctx.console, manual)
        return ReleaseOutcome(
            stage=PipelineStage.FAILED,
            plan=run.plan,
            state=run.state,
            error=error,
            manual_steps=manual,
        )

    if run.request.dry_run or not run.state.rollback:
        return ReleaseOutcome(stage=PipelineStage.FAILED, plan=run.plan, state=run.state, error=error)

    done, failed = rollback(run.state, ctx.console)
    if failed:
        ctx.console.warning("rollback incomplete; clean up the failed step(s) above by hand")
    return ReleaseOutcome(
        stage=PipelineStage.ROLLED_BACK,
        plan=run.plan,
        state=run.state,
        error=error,
        rolled_back=done,
        rollback_failures=failed,
        manual_steps=failed,
    )


def execute(request: ReleaseRequest, ctx: ReleaseContext) -> ReleaseOutcome:
    """Run a release end to end and report how far it got."""
    if request.dry_run:
        ctx = replace(ctx, console=PreviewConsole(ctx.console))
    ctx.console.header(f"Release ({request.kind})")

    initial = PipelineRun(stage=PipelineStage.IDLE, request=request)
    latest = initial

    def track(run: PipelineRun) -> None:
        nonlocal latest
        latest = run

    try:
        final, result = run_state_machine(
            initial_state=initial,
            get_step=lambda run: run.stage,
            handlers=_handlers(ctx),
            on_advance=track,
        )
    except BaseException as e:
        ctx.console.error(f"unexpected failure during {latest.stage.value}: {e}")
        if not request.dry_run:
            _recover(ctx, latest)
        raise

    if isinstance(result, Err):
        return _fail(ctx, final, result.error)

    return ReleaseOutcome(stage=final.stage, plan=final.plan, state=final.state)
