"""
dagmigrate - Migrator.

Owns the dependency graph of registered migrations and drives an adapter to
apply or revert them in dependency order.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID

from dagmigrate.adapters.base import Adapter
from dagmigrate.exceptions import (
    AdapterError,
    CycleError,
    DuplicateIdError,
    MigrationFailedError,
    UnknownIdError,
)
from dagmigrate.graph import DependencyGraph, NodeRef
from dagmigrate.migration import Migration, MigrationDirection, MigrationId, as_uuid
from dagmigrate.observability.logging import get_logger
from dagmigrate.observability.metrics import MigrationMetrics, get_metrics
from dagmigrate.observability.tracing import trace_method, traced_span

logger = get_logger(__name__)

HOOK_EVENTS = ("pre_apply", "post_apply", "pre_revert", "post_revert")


class Migrator:
    """
    Applies and reverts migrations against an adapter in dependency order.

    `up(target)` brings `target` and everything it depends on to the applied
    state. `down(target)` reverts everything built on top of `target` while
    leaving `target` itself applied. Without a target both operate on the
    whole graph. Each call re-reads the applied state from the adapter and
    walks one global topological order, so partial calls compose.

    Example:
        adapter = InMemoryAdapter()
        migrator = Migrator(adapter)
        migrator.register_multiple([create_users, add_email, add_index])

        migrator.up()                    # everything
        migrator.down(create_users.id)   # keep create_users, revert the rest
    """

    def __init__(
        self,
        adapter: Adapter,
        metrics: Optional[MigrationMetrics] = None,
    ):
        """
        Initialize the migrator.

        Args:
            adapter: Backend persisting applied state and running migrations.
                Bookkeeping setup (adapter.init()) is the caller's job.
            metrics: Metrics recorder (uses the process-wide one if not provided)
        """
        self._adapter = adapter
        self._metrics = metrics or get_metrics()
        self._graph = DependencyGraph()
        self._index: Dict[UUID, NodeRef] = {}
        self._hooks: Dict[str, List[Callable[[Migration], Any]]] = {
            event: [] for event in HOOK_EVENTS
        }

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def __len__(self) -> int:
        return len(self._graph)

    def __contains__(self, migration_id: object) -> bool:
        if not isinstance(migration_id, (str, UUID)):
            return False
        try:
            return as_uuid(migration_id) in self._index
        except ValueError:
            return False

    # ==================== REGISTRATION ====================

    def register(self, migration: Migration) -> None:
        """
        Register a single migration.

        Its dependencies must already be registered. Nothing is modified if
        registration fails.

        Raises:
            DuplicateIdError: If the id is already registered
            CycleError: If the migration depends on itself
            UnknownIdError: If a dependency is not registered
        """
        if migration.id in self._index:
            raise DuplicateIdError(migration.id)

        dependencies = sorted(migration.dependencies)
        for dep_id in dependencies:
            if dep_id == migration.id:
                raise CycleError(from_id=dep_id, to_id=migration.id)
            if dep_id not in self._index:
                raise UnknownIdError(dep_id)

        ref = self._graph.add_node(migration)
        self._index[migration.id] = ref
        for dep_id in dependencies:
            self._graph.add_edge(self._index[dep_id], ref)

        logger.debug(
            f"Registered migration {migration.id}",
            migration_id=str(migration.id),
            dependency_count=len(dependencies),
        )

    def register_multiple(self, migrations: Iterable[Migration]) -> None:
        """
        Register a batch of migrations in any order.

        All nodes are added before any dependency is resolved, so a batch may
        reference itself freely. The batch is all-or-nothing: on any error
        the migrator is left exactly as it was.

        Raises:
            DuplicateIdError: If an id is already registered or repeats in the batch
            UnknownIdError: If a dependency is neither registered nor in the batch
            CycleError: If the batch's dependencies form a cycle
        """
        batch = list(migrations)
        graph = self._graph.copy()
        index = dict(self._index)

        for migration in batch:
            if migration.id in index:
                raise DuplicateIdError(migration.id)
            index[migration.id] = graph.add_node(migration)

        for migration in batch:
            ref = index[migration.id]
            for dep_id in sorted(migration.dependencies):
                if dep_id not in index:
                    raise UnknownIdError(dep_id)
                graph.add_edge(index[dep_id], ref)

        self._graph = graph
        self._index = index
        logger.debug(f"Registered {len(batch)} migrations", batch_size=len(batch))

    # ==================== LOOKUP ====================

    def get(self, migration_id: MigrationId) -> Migration:
        """
        Get a registered migration by id.

        Raises:
            UnknownIdError: If no migration has this id
        """
        return self._graph.node(self._resolve(migration_id))

    def migrations(self) -> List[Migration]:
        """All registered migrations in execution (topological) order."""
        return [self._graph.node(ref) for ref in self._graph.toposort()]

    def applied(self) -> Set[UUID]:
        """
        Ids the adapter reports as applied.

        Raises:
            AdapterError: If the adapter fails to report its state
        """
        return self._fetch_applied()

    def pending(self, target: Optional[MigrationId] = None) -> List[Migration]:
        """
        Migrations up(target) would apply, in order.

        Raises:
            UnknownIdError: If target is not registered
            AdapterError: If the adapter fails to report its state
        """
        targets = self._up_targets(target)
        return self._plan(targets, self._fetch_applied(), MigrationDirection.UP)

    def get_status(self) -> Dict[str, Any]:
        """
        Get migration status information.

        Returns:
            Dict with counts, per-migration state in execution order, and
            `unknown_applied`: ids recorded as applied that are not registered
        """
        applied = self._fetch_applied()
        ordered = self.migrations()
        pending = [m for m in ordered if m.id not in applied]

        return {
            "registered_count": len(ordered),
            "applied_count": len(ordered) - len(pending),
            "pending_count": len(pending),
            "pending_ids": [str(m.id) for m in pending],
            "migrations": [
                {
                    "id": str(m.id),
                    "description": m.description,
                    "dependencies": sorted(str(d) for d in m.dependencies),
                    "applied": m.id in applied,
                }
                for m in ordered
            ],
            "unknown_applied": sorted(str(i) for i in applied - set(self._index)),
            "needs_migration": len(pending) > 0,
        }

    # ==================== HOOKS ====================

    def add_hook(self, event: str, callback: Callable[[Migration], Any]) -> None:
        """
        Add a callback for migration events.

        Args:
            event: pre_apply, post_apply, pre_revert or post_revert
            callback: Called with the migration. Exceptions are logged and
                do not stop the run.

        Raises:
            ValueError: If the event name is unknown
        """
        if event not in self._hooks:
            raise ValueError(
                f"Unknown hook event: {event}. Available: {list(HOOK_EVENTS)}"
            )
        self._hooks[event].append(callback)

    def _run_hooks(self, event: str, migration: Migration) -> None:
        for callback in self._hooks[event]:
            try:
                callback(migration)
            except Exception as e:
                name = getattr(callback, "__name__", repr(callback))
                logger.warning(
                    f"Hook {name} failed on {event}: {e}",
                    migration_id=str(migration.id),
                    hook_event=event,
                )

    # ==================== EXECUTION ====================

    @trace_method(name="dagmigrate.up")
    def up(
        self,
        target: Optional[MigrationId] = None,
        dry_run: bool = False,
    ) -> List[UUID]:
        """
        Apply migrations.

        Args:
            target: Apply this migration and its transitive dependencies.
                If None, apply every registered migration.
            dry_run: Log and return the plan without touching the adapter's
                applied state

        Returns:
            Ids applied (or that would be applied), in order

        Raises:
            UnknownIdError: If target is not registered
            AdapterError: If the adapter fails to report its state
            MigrationFailedError: On the first migration that fails; every
                migration before it in this run stays applied
        """
        targets = self._up_targets(target)
        plan = self._plan(targets, self._fetch_applied(), MigrationDirection.UP)
        return self._execute(plan, MigrationDirection.UP, dry_run)

    @trace_method(name="dagmigrate.down")
    def down(
        self,
        target: Optional[MigrationId] = None,
        dry_run: bool = False,
    ) -> List[UUID]:
        """
        Revert migrations.

        Args:
            target: Revert everything that transitively depends on this
                migration; the target itself stays applied. If None, revert
                every registered migration.
            dry_run: Log and return the plan without touching the adapter's
                applied state

        Returns:
            Ids reverted (or that would be reverted), in order

        Raises:
            UnknownIdError: If target is not registered
            AdapterError: If the adapter fails to report its state
            MigrationFailedError: On the first migration that fails; every
                migration before it in this run stays reverted
        """
        targets = self._down_targets(target)
        plan = self._plan(targets, self._fetch_applied(), MigrationDirection.DOWN)
        return self._execute(plan, MigrationDirection.DOWN, dry_run)

    def _resolve(self, migration_id: MigrationId) -> NodeRef:
        key = as_uuid(migration_id)
        if key not in self._index:
            raise UnknownIdError(key)
        return self._index[key]

    def _up_targets(self, target: Optional[MigrationId]) -> Set[NodeRef]:
        if target is not None:
            return self._graph.ancestors(self._resolve(target))
        targets: Set[NodeRef] = set()
        for sink in self._graph.sinks():
            targets |= self._graph.ancestors(sink)
        return targets

    def _down_targets(self, target: Optional[MigrationId]) -> Set[NodeRef]:
        if target is not None:
            ref = self._resolve(target)
            return self._graph.descendants(ref) - {ref}
        targets: Set[NodeRef] = set()
        for source in self._graph.sources():
            targets |= self._graph.descendants(source)
        return targets

    def _fetch_applied(self) -> Set[UUID]:
        try:
            return set(self._adapter.fetch_applied())
        except Exception as e:
            logger.error(f"Failed to fetch applied migrations: {e}")
            raise AdapterError(e) from e

    def _plan(
        self,
        targets: Set[NodeRef],
        applied: Set[UUID],
        direction: MigrationDirection,
    ) -> List[Migration]:
        """Walk the global order, keeping targets whose state must change."""
        order = self._graph.toposort()
        if direction == MigrationDirection.DOWN:
            order.reverse()

        plan: List[Migration] = []
        for ref in order:
            if ref not in targets:
                continue
            migration = self._graph.node(ref)
            is_applied = migration.id in applied
            if (direction == MigrationDirection.UP) != is_applied:
                plan.append(migration)
            else:
                logger.debug(
                    f"Skipping migration {migration.id}, already "
                    f"{'applied' if is_applied else 'not applied'}",
                    migration_id=str(migration.id),
                )
        return plan

    def _execute(
        self,
        plan: List[Migration],
        direction: MigrationDirection,
        dry_run: bool,
    ) -> List[UUID]:
        verb = "apply" if direction == MigrationDirection.UP else "revert"

        with logger.with_context(operation=direction.value, dry_run=dry_run):
            if not plan:
                logger.info(f"No migrations to {verb}")
                return []

            logger.info(f"Found {len(plan)} migrations to {verb}", count=len(plan))

            done: List[UUID] = []
            for migration in plan:
                if dry_run:
                    logger.info(
                        f"[DRY RUN] Would {verb} migration {migration.id}: "
                        f"{migration.description}",
                        migration_id=str(migration.id),
                    )
                    done.append(migration.id)
                    continue

                self._run_one(migration, direction)
                done.append(migration.id)

            return done

    def _run_one(self, migration: Migration, direction: MigrationDirection) -> None:
        """Apply or revert one migration, attributing any failure to it."""
        if direction == MigrationDirection.UP:
            action, pre_event, post_event = self._adapter.apply, "pre_apply", "post_apply"
            logger.info(
                f"Applying migration {migration.id}: {migration.description}",
                migration_id=str(migration.id),
            )
        else:
            action, pre_event, post_event = self._adapter.revert, "pre_revert", "post_revert"
            logger.info(
                f"Reverting migration {migration.id}: {migration.description}",
                migration_id=str(migration.id),
            )

        self._run_hooks(pre_event, migration)

        try:
            with traced_span(
                f"dagmigrate.{direction.value}.migration",
                {
                    "migration.id": str(migration.id),
                    "migration.description": migration.description,
                    "migration.direction": direction.value,
                },
            ):
                with self._metrics.measure(direction) as timing:
                    action(migration)
        except Exception as e:
            logger.exception(
                f"Migration {migration.id} failed ({direction.value}): {e}",
                migration_id=str(migration.id),
            )
            raise MigrationFailedError(
                migration_id=migration.id,
                description=migration.description,
                direction=direction,
                error=e,
            ) from e

        logger.debug(
            f"Migration {migration.id} done in {timing['duration_ms']:.1f}ms",
            migration_id=str(migration.id),
            duration_ms=timing["duration_ms"],
        )
        self._run_hooks(post_event, migration)
