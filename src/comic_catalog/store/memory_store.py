"""In-memory entity store.

Entities are attribute maps keyed by integer entity ids. Three indexes
back the two read paths the catalog needs:

- attribute index: attribute -> entity ids holding it
- reference index: (ref attribute, target id) -> entity ids pointing at it
- unique index: (unique attribute, value) -> owning entity id
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from schemas.attribute import AttributeDefinition
from schemas.tx_report import TxReport

from .exceptions import LoadError, QueryError, StoreError, StoreInitError
from .store import Store

logger = logging.getLogger(__name__)

DB_ID = "db/id"
SCHEMA_MARKER = "db/valueType"


class _Database:
    """Mutable state behind a MemoryStore."""

    def __init__(self) -> None:
        self.attributes: dict[str, AttributeDefinition] = {}
        self.entities: dict[int, dict[str, Any]] = {}
        self.attribute_index: dict[str, dict[int, None]] = {}
        self.ref_index: dict[tuple[str, int], dict[int, None]] = {}
        self.unique_index: dict[tuple[str, Any], int] = {}
        self.basis_t = 0
        self.next_eid = 1


class MemoryStore(Store):
    """Store that keeps every entity in process memory.

    The database is created lazily on first use and discarded by close().
    Transactions are validated completely before anything is applied, so a
    rejected transaction leaves the store unchanged.

    Example:
        with MemoryStore({"uri": "mem://comics"}) as store:
            store.transact([{"db/ident": "comic/name", "db/valueType": "string"}])
            store.transact([{"comic/name": "Watchmen"}])
            rows = store.query(("db/id", "comic/name"))
    """

    SCHEME = "mem://"

    def __init__(self, config: dict):
        super().__init__(config)
        if not self.uri.startswith(self.SCHEME) or self.uri == self.SCHEME:
            raise StoreInitError(f"Unsupported store URI: {self.uri}")

        self._db: _Database | None = None
        self._closed = False

    @property
    def name(self) -> str:
        return self.uri[len(self.SCHEME):]

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def db(self) -> _Database:
        """Lazy-initialized database.

        Raises:
            StoreError: If the store is closed
        """
        if self._closed:
            raise StoreError(f"Store {self.name} is closed")
        if self._db is None:
            self._db = _Database()
            logger.debug(f"Created in-memory database {self.name}")
        return self._db

    def close(self) -> None:
        """Discard the database. Further use of the store raises."""
        if self._db is not None:
            logger.debug(
                f"Discarding database {self.name} with {len(self._db.entities)} entities"
            )
            self._db = None
        self._closed = True

    def transact(self, tx_data: Sequence[Mapping[str, Any]]) -> TxReport:
        """Atomically install attributes and assert entity values.

        Args:
            tx_data: Attribute definitions (maps with "db/valueType") and
                entity maps. An entity map's "db/id" is a temporary id
                (string), an existing entity id (int), or absent. A new
                entity carrying an existing identity value (db/unique
                "identity") resolves to the entity that holds it, whether
                that entity is already stored or earlier in this transaction.

        Returns:
            TxReport for the applied transaction

        Raises:
            LoadError: If the store is closed or any part of the transaction
                is invalid. Nothing is applied in that case.
        """
        if self._closed:
            raise LoadError(f"Store {self.name} is closed")
        if isinstance(tx_data, (str, bytes, Mapping)) or not isinstance(tx_data, Sequence):
            raise LoadError("Transaction data must be a list of maps")

        db = self.db
        errors: list[str] = []

        definitions: list[Mapping[str, Any]] = []
        entity_maps: list[Mapping[str, Any]] = []
        for i, item in enumerate(tx_data):
            if not isinstance(item, Mapping):
                errors.append(f"Item {i} is not a map")
            elif SCHEMA_MARKER in item:
                definitions.append(item)
            else:
                entity_maps.append(item)

        installed = self._validate_definitions(db, definitions, errors)
        tempids, eids, next_eid = self._resolve_ids(db, entity_maps, errors)
        assertions = self._collect_assertions(db, entity_maps, eids, tempids, errors)
        self._check_unique(db, assertions, errors)

        if errors:
            raise LoadError(
                f"Transaction rejected with {len(errors)} error(s): {errors[0]}",
                errors=errors,
            )

        for definition in installed:
            db.attributes[definition.ident] = definition
            db.attribute_index.setdefault(definition.ident, {})

        datoms = 0
        for eid, attribute, value in assertions:
            if self._apply(db, eid, attribute, value):
                datoms += 1

        db.next_eid = next_eid
        db.basis_t += 1

        report = TxReport(
            basis_t=db.basis_t,
            tempids=tempids,
            datoms=datoms,
            attributes=[d.ident for d in installed],
        )
        logger.debug(
            f"Transaction {report.basis_t} applied: {len(report.attributes)} attributes, "
            f"{report.datoms} datoms, {len(report.tempids)} tempids"
        )
        return report

    def query(
        self,
        find: Sequence[str],
        where: Mapping[str, Any] | None = None,
    ) -> list[tuple]:
        """Find entities by attribute pattern.

        Args:
            find: Attributes to return per row; "db/id" yields the entity id
            where: Attribute values every matching entity must hold. Ref
                attributes are compared by entity id.

        Returns:
            One tuple per matching entity, in entity creation order

        Raises:
            QueryError: If the store is closed, find is empty, or an
                attribute is not installed
        """
        if self._closed:
            raise QueryError(f"Store {self.name} is closed")
        if isinstance(find, str) or not find:
            raise QueryError("Query must name at least one attribute to find")

        db = self.db
        where = dict(where or {})
        for attribute in (*find, *where):
            if attribute != DB_ID and attribute not in db.attributes:
                raise QueryError(f"Unknown attribute in query: {attribute}")

        rows: list[tuple] = []
        for eid in self._candidates(db, find, where):
            entity = db.entities[eid]
            if not all(self._matches(db, eid, entity, a, v) for a, v in where.items()):
                continue
            if not all(a == DB_ID or a in entity for a in find):
                continue
            rows.append(
                tuple(eid if a == DB_ID else _copy_value(entity[a]) for a in find)
            )

        logger.debug(f"Query {list(find)} where {where} returned {len(rows)} rows")
        return rows

    def entity(self, eid: int) -> dict[str, Any]:
        """Return a copy of an entity's attribute map.

        Raises:
            QueryError: If the store is closed or the entity does not exist
        """
        if self._closed:
            raise QueryError(f"Store {self.name} is closed")
        entity = self.db.entities.get(eid)
        if entity is None:
            raise QueryError(f"Entity not found: {eid}")
        return {DB_ID: eid, **{k: _copy_value(v) for k, v in entity.items()}}

    def attribute(self, ident: str) -> AttributeDefinition:
        """Return the installed definition of an attribute.

        Raises:
            QueryError: If the store is closed or the attribute is unknown
        """
        if self._closed:
            raise QueryError(f"Store {self.name} is closed")
        definition = self.db.attributes.get(ident)
        if definition is None:
            raise QueryError(f"Unknown attribute: {ident}")
        return definition

    def _validate_definitions(
        self,
        db: _Database,
        definitions: list[Mapping[str, Any]],
        errors: list[str],
    ) -> list[AttributeDefinition]:
        """Validate attribute definitions, returning the ones to install."""
        installed: dict[str, AttributeDefinition] = {}

        for item in definitions:
            try:
                definition = AttributeDefinition.model_validate(dict(item))
            except PydanticValidationError as e:
                ident = item.get("db/ident", "<missing db/ident>")
                errors.extend(
                    f"Attribute {ident}: {err['msg']} at {'.'.join(map(str, err['loc']))}"
                    for err in e.errors()
                )
                continue

            if definition.ident.startswith("db/"):
                errors.append(f"Attribute {definition.ident} uses the reserved db namespace")
                continue

            existing = installed.get(definition.ident) or db.attributes.get(definition.ident)
            if existing is not None:
                if _shape(existing) != _shape(definition):
                    errors.append(
                        f"Attribute {definition.ident} is already installed with a different definition"
                    )
                    continue
                if existing == definition:
                    continue

            installed[definition.ident] = definition

        return list(installed.values())

    def _resolve_ids(
        self,
        db: _Database,
        entity_maps: list[Mapping[str, Any]],
        errors: list[str],
    ) -> tuple[dict[str, int], list[int | None], int]:
        """Assign an entity id to every entity map.

        Returns:
            Tuple of (tempid -> eid, eid per entity map, next free eid)
        """
        tempids: dict[str, int] = {}
        identities: dict[tuple[str, Any], int] = {}
        eids: list[int | None] = []
        next_eid = db.next_eid

        for item in entity_maps:
            raw_id = item.get(DB_ID)

            if raw_id is None:
                eid = self._upsert_target(db, item, identities)
                if eid is None:
                    eid = next_eid
                    next_eid += 1
                eids.append(eid)
            elif isinstance(raw_id, bool) or not isinstance(raw_id, (int, str)):
                errors.append(f"Invalid db/id {raw_id!r}: must be a tempid string or entity id")
                eids.append(None)
            elif isinstance(raw_id, int):
                if raw_id not in db.entities:
                    errors.append(f"Entity not found: {raw_id}")
                    eids.append(None)
                else:
                    eids.append(raw_id)
            elif raw_id in tempids:
                eids.append(tempids[raw_id])
            else:
                eid = self._upsert_target(db, item, identities)
                if eid is None:
                    eid = next_eid
                    next_eid += 1
                tempids[raw_id] = eid
                eids.append(eid)

            if eids[-1] is not None:
                for key in self._identity_keys(db, item):
                    identities.setdefault(key, eids[-1])

            if not any(key != DB_ID for key in item):
                errors.append(f"Entity {raw_id!r} asserts no attributes")

        return tempids, eids, next_eid

    def _identity_keys(
        self, db: _Database, item: Mapping[str, Any]
    ) -> list[tuple[str, Any]]:
        """Return the (attribute, value) pairs of identity attributes in a map."""
        keys = []
        for attribute, value in item.items():
            definition = db.attributes.get(attribute)
            if definition is None or definition.unique != "identity" or definition.is_many:
                continue
            try:
                hash(value)
            except TypeError:
                continue
            keys.append((attribute, value))
        return keys

    def _upsert_target(
        self,
        db: _Database,
        item: Mapping[str, Any],
        identities: dict[tuple[str, Any], int],
    ) -> int | None:
        """Find the entity already holding one of a map's identity values.

        Entities resolved earlier in the same transaction take precedence
        over entities already in the store.
        """
        for key in self._identity_keys(db, item):
            eid = identities.get(key, db.unique_index.get(key))
            if eid is not None:
                logger.debug(f"Upserting {key[0]}={key[1]!r} into entity {eid}")
                return eid
        return None

    def _collect_assertions(
        self,
        db: _Database,
        entity_maps: list[Mapping[str, Any]],
        eids: list[int | None],
        tempids: dict[str, int],
        errors: list[str],
    ) -> list[tuple[int, AttributeDefinition, Any]]:
        """Type-check every attribute value and resolve references."""
        assertions: list[tuple[int, AttributeDefinition, Any]] = []

        for item, eid in zip(entity_maps, eids):
            label = item.get(DB_ID, eid)
            for attribute, value in item.items():
                if attribute == DB_ID:
                    continue

                definition = db.attributes.get(attribute)
                if definition is None:
                    errors.append(f"Entity {label!r}: unknown attribute {attribute}")
                    continue

                if definition.is_many:
                    if not isinstance(value, list):
                        errors.append(
                            f"Entity {label!r}: {attribute} has cardinality many and needs a list"
                        )
                        continue
                    values = value
                else:
                    values = [value]

                for v in values:
                    try:
                        coerced = _coerce(db, definition, v, tempids)
                    except ValueError as e:
                        errors.append(f"Entity {label!r}: {attribute} {e}")
                        continue
                    if eid is not None:
                        assertions.append((eid, definition, coerced))

        return assertions

    def _check_unique(
        self,
        db: _Database,
        assertions: list[tuple[int, AttributeDefinition, Any]],
        errors: list[str],
    ) -> None:
        """Reject unique values already owned by, or asserted for, another entity."""
        claimed: dict[tuple[str, Any], int] = {}

        for eid, definition, value in assertions:
            if definition.unique is None:
                continue
            key = (definition.ident, value)
            owner = claimed.get(key, db.unique_index.get(key))
            if owner is not None and owner != eid:
                errors.append(
                    f"Unique conflict: {definition.ident}={value!r} already belongs to entity {owner}"
                )
                continue
            claimed[key] = eid

    def _apply(
        self,
        db: _Database,
        eid: int,
        definition: AttributeDefinition,
        value: Any,
    ) -> bool:
        """Apply one validated assertion. Returns False for a no-op."""
        entity = db.entities.setdefault(eid, {})
        ident = definition.ident

        if definition.is_many:
            current = entity.setdefault(ident, [])
            if value in current:
                return False
            current.append(value)
        else:
            if ident in entity:
                if entity[ident] == value:
                    return False
                self._unindex(db, eid, definition, entity[ident])
            entity[ident] = value

        db.attribute_index.setdefault(ident, {})[eid] = None
        if definition.is_ref:
            db.ref_index.setdefault((ident, value), {})[eid] = None
        if definition.unique is not None:
            db.unique_index[(ident, value)] = eid
        return True

    def _unindex(
        self,
        db: _Database,
        eid: int,
        definition: AttributeDefinition,
        value: Any,
    ) -> None:
        """Drop a replaced cardinality-one value from the value indexes."""
        if definition.is_ref:
            db.ref_index.get((definition.ident, value), {}).pop(eid, None)
        if definition.unique is not None:
            db.unique_index.pop((definition.ident, value), None)

    def _candidates(
        self,
        db: _Database,
        find: Sequence[str],
        where: Mapping[str, Any],
    ) -> list[int]:
        """Pick the narrowest index for a query, in entity creation order."""
        if DB_ID in where:
            eid = where[DB_ID]
            return [eid] if eid in db.entities else []

        for attribute, value in where.items():
            definition = db.attributes[attribute]
            if definition.is_ref:
                return sorted(db.ref_index.get((attribute, value), {}))
            if definition.unique is not None and not definition.is_many:
                try:
                    owner = db.unique_index.get((attribute, value))
                except TypeError:
                    return []
                return [owner] if owner is not None else []

        for attribute in (*find, *where):
            if attribute != DB_ID:
                return sorted(db.attribute_index.get(attribute, {}))

        return list(db.entities)

    def _matches(
        self,
        db: _Database,
        eid: int,
        entity: dict[str, Any],
        attribute: str,
        value: Any,
    ) -> bool:
        if attribute == DB_ID:
            return eid == value
        if attribute not in entity:
            return False
        if db.attributes[attribute].is_many:
            return value in entity[attribute]
        return entity[attribute] == value


def _coerce(
    db: _Database,
    definition: AttributeDefinition,
    value: Any,
    tempids: dict[str, int],
) -> Any:
    """Check a value against its attribute type, resolving refs to entity ids.

    Raises:
        ValueError: If the value does not fit the attribute
    """
    value_type = definition.value_type

    if value_type == "string":
        if not isinstance(value, str):
            raise ValueError(f"expects a string, got {value!r}")
        return value

    if value_type == "long":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"expects an integer, got {value!r}")
        return value

    if value_type == "boolean":
        if not isinstance(value, bool):
            raise ValueError(f"expects a boolean, got {value!r}")
        return value

    if value_type == "double":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expects a number, got {value!r}")
        return float(value)

    # ref
    if isinstance(value, str):
        if value not in tempids:
            raise ValueError(f"references unresolved tempid {value!r}")
        return tempids[value]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expects an entity reference, got {value!r}")
    if value not in db.entities:
        raise ValueError(f"references unknown entity {value}")
    return value


def _shape(definition: AttributeDefinition) -> tuple:
    """The parts of a definition that existing data depends on."""
    return (definition.value_type, definition.cardinality, definition.unique)


def _copy_value(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value
