# Endpoint signatures below close over per-entity pydantic models, so their
# annotations must be real objects at definition time (no postponed
# annotations in this module).
import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from fastapi import APIRouter, Depends

from restgen.core.auth.rbac import gates_for
from restgen.core.compiler.partial import PartialDescriptor, compile_partial_update
from restgen.core.compiler.records import partial_model, present_fields, record_model
from restgen.core.compiler.relation import nested_path
from restgen.core.compiler.sql_emitter import emit_statements, insert_params, update_params
from restgen.core.entity.extractor import extract_entity
from restgen.core.entity.models import EntityDescriptor
from restgen.core.errors import DatabaseError, NotFound, StorageError
from restgen.core.observability.metrics import SCHEMA_MATERIALIZATIONS_TOTAL, STATEMENTS_TOTAL
from restgen.core.storage.pool import ExecResult, StatementPool

log = logging.getLogger("restgen.resource")
schema_log = logging.getLogger("restgen.schema")

EntitySource = Union[EntityDescriptor, Mapping[str, Any], type]


class EntityResource:
    """
    Compiled CRUD resource for one entity.

    Everything derived from the descriptor (statements, body models, role
    gates) is built in the constructor and never changes afterwards.
    """

    def __init__(self, entity: EntityDescriptor, pool: StatementPool, admin: Optional[str] = None):
        self.entity = entity
        self.pool = pool
        self.statements = emit_statements(entity)
        self.partial = PartialDescriptor.from_entity(entity)
        self.record_model = record_model(entity)
        self.partial_model = partial_model(self.partial)
        self.gates = gates_for(entity, admin)
        self.routes: List[Tuple[str, str]] = []
        self._materializer: Optional[threading.Thread] = None

    # ------------------------------------------------------------
    # Statement dispatch
    # ------------------------------------------------------------
    def _run(self, operation: str, sql: str, params: Tuple[Any, ...] = ()) -> ExecResult:
        table = self.entity.table
        try:
            result = self.pool.execute(sql, params)
        except StorageError as e:
            STATEMENTS_TOTAL.labels(table=table, operation=operation, outcome="error").inc()
            log.error("statement failed table=%s operation=%s err=%s", table, operation, e)
            raise DatabaseError(str(e)) from e
        STATEMENTS_TOTAL.labels(table=table, operation=operation, outcome="ok").inc()
        return result

    # ------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------
    def list_all(self) -> List[Dict[str, Any]]:
        return self._run("list", self.statements.select_all).rows

    def get_one(self, record_id: int) -> Dict[str, Any]:
        rows = self._run("get", self.statements.select_by_id, (record_id,)).rows
        if not rows:
            raise NotFound(f"{self.entity.table} {record_id} not found")
        return rows[0]

    def list_by_parent(self, parent_id: int) -> List[Dict[str, Any]]:
        return self._run("list_by_parent", self.statements.select_by_parent, (parent_id,)).rows

    def create(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        result = self._run("create", self.statements.insert, insert_params(self.statements, record))
        new_id = result.last_id
        if new_id is None and result.rows:
            new_id = result.rows[0].get(self.entity.id_field)
        return {self.entity.id_field: new_id}

    def replace(self, record_id: int, record: Mapping[str, Any]) -> Dict[str, Any]:
        params = update_params(self.statements, record, record_id)
        result = self._run("replace", self.statements.update, params)
        if result.rows_affected == 0:
            raise NotFound(f"{self.entity.table} {record_id} not found")
        return {"updated": result.rows_affected}

    def patch(self, record_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
        stmt = compile_partial_update(self.partial, payload, record_id)
        if stmt is None:
            return {"updated": 0}
        result = self._run("patch", stmt.sql, stmt.params)
        if result.rows_affected == 0:
            raise NotFound(f"{self.entity.table} {record_id} not found")
        return {"updated": result.rows_affected}

    def delete(self, record_id: int) -> Dict[str, Any]:
        result = self._run("delete", self.statements.delete, (record_id,))
        if result.rows_affected == 0:
            raise NotFound(f"{self.entity.table} {record_id} not found")
        return {"deleted": result.rows_affected}

    # ------------------------------------------------------------
    # Schema materialization
    # ------------------------------------------------------------
    def materialize(self) -> None:
        """Run CREATE TABLE IF NOT EXISTS synchronously."""
        self._run("materialize", self.statements.create_table)

    def _materialize_best_effort(self) -> None:
        table = self.entity.table
        try:
            self.materialize()
        except Exception as e:
            SCHEMA_MATERIALIZATIONS_TOTAL.labels(table=table, outcome="error").inc()
            schema_log.error("schema materialization failed table=%s err=%s", table, e)
            return
        SCHEMA_MATERIALIZATIONS_TOTAL.labels(table=table, outcome="ok").inc()
        schema_log.info("schema ready table=%s", table)

    def start_materialization(self) -> threading.Thread:
        """
        Create the table on a background thread.

        Requests may arrive before the table exists; they fail with a
        database error until it does.
        """
        if self._materializer is None:
            self._materializer = threading.Thread(
                target=self._materialize_best_effort,
                name=f"restgen-materialize-{self.entity.table}",
                daemon=True,
            )
            self._materializer.start()
        return self._materializer

    def wait_materialized(self, timeout: Optional[float] = None) -> bool:
        if self._materializer is None:
            return False
        self._materializer.join(timeout)
        return not self._materializer.is_alive()

    # ------------------------------------------------------------
    # Route registration
    # ------------------------------------------------------------
    def register(self, router: APIRouter) -> None:
        table = self.entity.table
        Record = self.record_model
        Partial = self.partial_model
        read = [Depends(self.gates["read"])]
        update = [Depends(self.gates["update"])]
        delete = [Depends(self.gates["delete"])]

        def list_all():
            return self.list_all()

        def create(body: Record):
            return self.create(body.model_dump())

        def get_one(record_id: int):
            return self.get_one(record_id)

        def replace(record_id: int, body: Record):
            return self.replace(record_id, body.model_dump())

        def patch(record_id: int, body: Partial):
            return self.patch(record_id, present_fields(body))

        def delete_one(record_id: int):
            return self.delete(record_id)

        collection = f"/{table}"
        item = f"/{table}/{{record_id}}"
        routes = [
            (collection, "GET", list_all, read, 200, f"list_{table}"),
            (collection, "POST", create, update, 201, f"create_{table}"),
            (item, "GET", get_one, read, 200, f"get_{table}"),
            (item, "PUT", replace, update, 200, f"replace_{table}"),
            (item, "PATCH", patch, update, 200, f"patch_{table}"),
            (item, "DELETE", delete_one, delete, 200, f"delete_{table}"),
        ]

        nested = nested_path(self.entity)
        if nested is not None and self.entity.relation.nested_route_enabled:

            def list_by_parent(parent_id: int):
                return self.list_by_parent(parent_id)

            routes.append((nested, "GET", list_by_parent, read, 200, f"list_{table}_by_parent"))

        for path, method, endpoint, deps, status, name in routes:
            router.add_api_route(
                path,
                endpoint,
                methods=[method],
                dependencies=deps,
                status_code=status,
                name=name,
                tags=[table],
            )
            self.routes.append((method, path))

        log.info("registered %d routes for %s", len(routes), table)


def configure(
    router: APIRouter,
    entity: EntitySource,
    pool: StatementPool,
    *,
    materialize: bool = True,
    admin: Optional[str] = None,
) -> EntityResource:
    """
    Compile one entity and register its routes.

    Accepts a descriptor, a raw annotation mapping, or a decorated model.
    Schema materialization is started in the background and never blocks
    or fails registration.
    """
    descriptor = entity if isinstance(entity, EntityDescriptor) else extract_entity(entity)
    resource = EntityResource(descriptor, pool, admin=admin)
    resource.register(router)
    if materialize:
        resource.start_materialization()
    return resource


def configure_all(
    router: APIRouter,
    entities: Iterable[EntitySource],
    pool: StatementPool,
    *,
    materialize: bool = True,
    admin: Optional[str] = None,
) -> List[EntityResource]:
    return [configure(router, e, pool, materialize=materialize, admin=admin) for e in entities]
