# ==============================================================================
# RESOURCE - Automatic REST CRUD Routes
# ==============================================================================
# Declares a model once and gets list / get / update / create / delete
# routes, table migration and response envelopes for it.
# ==============================================================================

from __future__ import annotations

import inspect
import logging
import re
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, params, status
from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from minimal.core.exceptions import (
    AppException,
    DatabaseError,
    InvalidDataError,
    InvalidIDError,
    NoBindTypeError,
    NoResourceAccessError,
    NoResourceFoundError,
)
from minimal.database.base import Model
from minimal.database.engine import Database
from minimal.schemas.response import fail_code, ok

logger = logging.getLogger(__name__)

EntityType = TypeVar("EntityType", bound=Model)

# Predicates and queries may be plain functions or coroutine functions.
MaybeAwaitable = Union[Any, Awaitable[Any]]
RequestPredicate = Callable[[Request], MaybeAwaitable]
EntityPredicate = Callable[[Request, Any], MaybeAwaitable]
ListAllQuery = Callable[[Request, AsyncSession], MaybeAwaitable]
ListByIdQuery = Callable[[Request, AsyncSession, int], MaybeAwaitable]
WriteByIdQuery = Callable[[Request, AsyncSession, int, BaseModel], MaybeAwaitable]
DeleteByIdQuery = Callable[[Request, AsyncSession, int], MaybeAwaitable]

_ID_PATTERN = re.compile(r"[0-9]+")
# Largest id a 64-bit signed integer column can hold.
MAX_ID = 2**63 - 1
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Errors each route's query may raise that keep their own status in the
# response. Anything else answers 500.
_LIST_ALL_ERRORS = (NoResourceFoundError,)
_BY_ID_ERRORS = (NoResourceFoundError, NoResourceAccessError)
_WRITE_ERRORS = (NoResourceFoundError, NoResourceAccessError, InvalidDataError)


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def parse_id(raw: str) -> int:
    """
    Parse the ``id`` path parameter.

    Raises:
        InvalidIDError: Unless ``raw`` is a decimal integer between 0 and
            ``MAX_ID``
    """
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidIDError()
    value = int(raw)
    if value > MAX_ID:
        raise InvalidIDError()
    return value


class Resource(Generic[EntityType]):
    """
    Automatic REST API for one model.

    Declare the model, optionally tune the hooks, and register the
    resource with the server; routes, table migration and envelopes are
    set up automatically.

    Routes (relative to ``name``):
        GET    ""       list all entities
        GET    "/{id}"  get one entity
        PUT    "/{id}"  patch an entity from the write bind type
        POST   ""       create an entity from the create bind type
        DELETE "/{id}"  delete an entity

    Attributes:
        model: Mapped model class the routes operate on
        name: Route prefix, ``"/" + __tablename__`` by default
        router: The router built by ``register`` (None before)

    Example:
        >>> todos = Resource(Todo)
        >>> todos.set_create_bind_type(TodoIn)
        >>> todos.set_write_bind_type(TodoPatch)
        >>> todos.can_delete_by_id(lambda request, todo: todo.owner == user_of(request))
        >>> server = Server(config, [todos], [])
    """

    def __init__(self, model: Type[EntityType], name: Optional[str] = None) -> None:
        self.model = model
        self.name = self._normalize_name(name if name is not None else model.__tablename__)
        self.router: Optional[APIRouter] = None

        # Hooking into registration, by consumer.
        self._on_register: Optional[Callable[[FastAPI], Any]] = None

        # List all
        self._can_list_all: Optional[RequestPredicate] = None
        self._list_all_query: Optional[ListAllQuery] = None

        # List by id
        self._can_list_by_id: Optional[EntityPredicate] = None
        self._list_by_id_query: Optional[ListByIdQuery] = None

        # Write by id
        self._can_write_by_id: Optional[EntityPredicate] = None
        self._write_bind_type: Optional[Type[BaseModel]] = None
        self._write_by_id_query: Optional[WriteByIdQuery] = None

        # Create
        self._can_create: Optional[RequestPredicate] = None
        self._create_bind_type: Optional[Type[BaseModel]] = None

        # Delete by id
        self._can_delete_by_id: Optional[EntityPredicate] = None
        self._delete_by_id_query: Optional[DeleteByIdQuery] = None

        self._middlewares: List[params.Depends] = []

    @staticmethod
    def _normalize_name(name: str) -> str:
        name = "/" + name.strip("/")
        if name == "/":
            raise ValueError("Resource name must not be empty")
        return name

    # ==========================================================================
    # REGISTRATION
    # ==========================================================================

    def register(self, app: FastAPI) -> None:
        """
        Add the resource's routes to ``app`` and queue its table for migration.

        The ``on_register`` hook runs first, with the same app.
        """
        if self._on_register is not None:
            self._on_register(app)

        logger.info(f"Initialized resource: {self.name}")
        Database.register_model(self.model)

        router = APIRouter(
            prefix=self.name,
            tags=[self.name.lstrip("/")],
            dependencies=list(self._middlewares),
        )
        router.add_api_route(
            "", self._get_all, methods=["GET"], summary=f"List all {self.name}"
        )
        router.add_api_route(
            "/{id}", self._get_by_id, methods=["GET"], summary=f"Get one of {self.name}"
        )
        router.add_api_route(
            "/{id}", self._write_by_id, methods=["PUT"], summary=f"Update one of {self.name}"
        )
        router.add_api_route(
            "", self._create, methods=["POST"], summary=f"Create one of {self.name}"
        )
        router.add_api_route(
            "/{id}", self._delete_by_id, methods=["DELETE"], summary=f"Delete one of {self.name}"
        )

        app.include_router(router)
        self.router = router

    # ==========================================================================
    # DEFAULT QUERIES
    # ==========================================================================

    async def default_list_all_query(
        self,
        request: Request,
        session: AsyncSession,
    ) -> List[EntityType]:
        """Every row, ordered by id."""
        try:
            result = await session.execute(select(self.model).order_by(self.model.id))
        except SQLAlchemyError as e:
            logger.error(f"Listing {self.name} failed: {e}")
            raise NoResourceFoundError() from e
        return list(result.scalars().all())

    async def default_list_by_id_query(
        self,
        request: Request,
        session: AsyncSession,
        id: int,
    ) -> EntityType:
        entity = await self._fetch(session, id)
        await self._authorize(self._can_list_by_id, request, entity)
        return entity

    async def default_write_by_id_query(
        self,
        request: Request,
        session: AsyncSession,
        id: int,
        bound: BaseModel,
    ) -> None:
        entity = await self._fetch(session, id)
        await self._authorize(self._can_write_by_id, request, entity)
        self.patch(entity, bound)
        await session.flush()

    async def default_delete_by_id_query(
        self,
        request: Request,
        session: AsyncSession,
        id: int,
    ) -> None:
        entity = await self._fetch(session, id)
        await self._authorize(self._can_delete_by_id, request, entity)
        await session.delete(entity)
        await session.flush()

    async def _fetch(self, session: AsyncSession, id: int) -> EntityType:
        entity = await session.get(self.model, id)
        if entity is None:
            raise NoResourceFoundError(resource_id=id)
        return entity

    @staticmethod
    async def _authorize(predicate: Optional[Callable[..., Any]], *args: Any) -> None:
        if predicate is not None and not await _call(predicate, *args):
            raise NoResourceAccessError()

    def patch(self, entity: EntityType, bound: BaseModel) -> EntityType:
        """
        Copy the fields a client actually sent onto ``entity``.

        Fields left out of the request body are untouched, so a bind type
        with all-optional fields gives partial updates.

        Raises:
            InvalidDataError: If a field has no column on the model, or
                names the primary key
        """
        columns = {attr.key for attr in self.model.__mapper__.column_attrs}
        primary_keys = {column.key for column in self.model.__mapper__.primary_key}

        for key, value in bound.model_dump(exclude_unset=True).items():
            if key not in columns or key in primary_keys:
                logger.error(f"Patching failed: {self.model.__name__} has no writable field '{key}'")
                raise InvalidDataError(errors={key: "unknown field"})
            setattr(entity, key, value)

        return entity

    # ==========================================================================
    # HANDLERS
    # ==========================================================================

    def _failure(self, error: Exception, passthrough: Tuple[Type[AppException], ...]) -> Response:
        if isinstance(error, HTTPException):
            raise error
        if isinstance(error, passthrough):
            return fail_code(error.status_code, error)
        if isinstance(error, AppException):
            logger.error(f"{self.name}: {error.message}")
        else:
            logger.error(f"{self.name}: query failed: {error!r}")
        return fail_code(status.HTTP_500_INTERNAL_SERVER_ERROR, DatabaseError())

    async def _bind(self, request: Request, bind_type: Type[BaseModel]) -> BaseModel:
        """Validate the request body (JSON or form) into ``bind_type``."""
        content_type = request.headers.get("content-type", "")
        try:
            if content_type.startswith(_FORM_TYPES):
                payload: Any = dict(await request.form())
            else:
                payload = await request.json()
            return bind_type.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Binding failed: {e}")
            raise InvalidDataError(errors=e.errors(include_url=False, include_context=False))
        except ValueError as e:
            logger.error(f"Binding failed: {e}")
            raise InvalidDataError()

    async def _get_all(self, request: Request) -> Response:
        try:
            await self._authorize(self._can_list_all, request)
        except NoResourceAccessError as e:
            return fail_code(status.HTTP_403_FORBIDDEN, e)

        query = self._list_all_query or self.default_list_all_query
        try:
            async with Database.session() as session:
                entities = await _call(query, request, session)
                return ok(entities)
        except Exception as e:
            return self._failure(e, _LIST_ALL_ERRORS)

    async def _get_by_id(self, request: Request, id: str) -> Response:
        try:
            entity_id = parse_id(id)
        except InvalidIDError as e:
            return fail_code(status.HTTP_400_BAD_REQUEST, e)

        query = self._list_by_id_query or self.default_list_by_id_query
        try:
            async with Database.session() as session:
                entity = await _call(query, request, session, entity_id)
                return ok(entity)
        except Exception as e:
            return self._failure(e, _BY_ID_ERRORS)

    async def _write_by_id(self, request: Request, id: str) -> Response:
        if self._write_bind_type is None:
            logger.error("Cannot write without a bind type set up. Call set_write_bind_type.")
            return fail_code(status.HTTP_500_INTERNAL_SERVER_ERROR, NoBindTypeError())

        try:
            bound = await self._bind(request, self._write_bind_type)
            entity_id = parse_id(id)
        except (InvalidDataError, InvalidIDError) as e:
            return fail_code(status.HTTP_400_BAD_REQUEST, e)

        query = self._write_by_id_query or self.default_write_by_id_query
        try:
            async with Database.session() as session:
                await _call(query, request, session, entity_id, bound)
        except Exception as e:
            return self._failure(e, _WRITE_ERRORS)

        return Response(status_code=status.HTTP_200_OK)

    async def _create(self, request: Request) -> Response:
        try:
            await self._authorize(self._can_create, request)
        except NoResourceAccessError as e:
            return fail_code(status.HTTP_403_FORBIDDEN, e)

        if self._create_bind_type is None:
            logger.error("Cannot create without a bind type set up. Call set_create_bind_type.")
            return fail_code(status.HTTP_500_INTERNAL_SERVER_ERROR, NoBindTypeError())

        try:
            bound = await self._bind(request, self._create_bind_type)
            entity = self.patch(self.model(), bound)
        except InvalidDataError as e:
            return fail_code(status.HTTP_400_BAD_REQUEST, e)

        try:
            async with Database.session() as session:
                session.add(entity)
                await session.flush()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Creating {self.model.__name__} failed: {e!r}")
            return fail_code(status.HTTP_500_INTERNAL_SERVER_ERROR, DatabaseError())

        return Response(status_code=status.HTTP_200_OK)

    async def _delete_by_id(self, request: Request, id: str) -> Response:
        try:
            entity_id = parse_id(id)
        except InvalidIDError as e:
            return fail_code(status.HTTP_400_BAD_REQUEST, e)

        query = self._delete_by_id_query or self.default_delete_by_id_query
        try:
            async with Database.session() as session:
                await _call(query, request, session, entity_id)
        except Exception as e:
            return self._failure(e, _BY_ID_ERRORS)

        return Response(status_code=status.HTTP_200_OK)

    # ==========================================================================
    # CONFIGURATION
    # ==========================================================================

    def middlewares(self, *dependencies: Union[Callable[..., Any], params.Depends]) -> None:
        """
        Run ``dependencies`` before every route of this resource.

        Replaces any dependencies set earlier. Takes effect at ``register``.
        """
        self._middlewares = [
            d if isinstance(d, params.Depends) else Depends(d)
            for d in dependencies
        ]

    def on_register(self, fn: Callable[[FastAPI], Any]) -> None:
        """
        Call ``fn(app)`` at the start of ``register``.

        ``register`` is synchronous, so ``fn`` must be too.

        Raises:
            TypeError: If ``fn`` is a coroutine function
        """
        if inspect.iscoroutinefunction(fn):
            raise TypeError(f"on_register hook must be a plain function, got coroutine function {fn!r}")
        self._on_register = fn

    # Authorization predicates. A falsy result answers 403.

    def can_list_all(self, predicate: RequestPredicate) -> None:
        self._can_list_all = predicate

    def can_list_by_id(self, predicate: EntityPredicate) -> None:
        self._can_list_by_id = predicate

    def can_write_by_id(self, predicate: EntityPredicate) -> None:
        self._can_write_by_id = predicate

    def can_create(self, predicate: RequestPredicate) -> None:
        self._can_create = predicate

    def can_delete_by_id(self, predicate: EntityPredicate) -> None:
        self._can_delete_by_id = predicate

    # Query overrides. NoResourceFoundError answers 404 on every route,
    # NoResourceAccessError 403 on the by-id routes, InvalidDataError 400 on
    # write. Any other exception answers 500.

    def override_list_all_query(self, query: ListAllQuery) -> None:
        """Replace the "list all" query; ``query(request, session)`` returns the entities."""
        self._list_all_query = query

    def override_list_by_id_query(self, query: ListByIdQuery) -> None:
        """Replace the "get by id" query; ``query(request, session, id)`` returns the entity."""
        self._list_by_id_query = query

    def override_write_by_id_query(self, query: WriteByIdQuery) -> None:
        """Replace the "update by id" query; ``query(request, session, id, bound)``."""
        self._write_by_id_query = query

    def override_delete_by_id_query(self, query: DeleteByIdQuery) -> None:
        """Replace the "delete by id" query; ``query(request, session, id)``."""
        self._delete_by_id_query = query

    # Bind types ("DTOs") request bodies are validated into.

    def set_write_bind_type(self, schema: Type[BaseModel]) -> None:
        self._write_bind_type = self._check_bind_type(schema)

    def set_create_bind_type(self, schema: Type[BaseModel]) -> None:
        self._create_bind_type = self._check_bind_type(schema)

    @staticmethod
    def _check_bind_type(schema: Type[BaseModel]) -> Type[BaseModel]:
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise TypeError(f"Bind type must be a pydantic model class, got {schema!r}")
        return schema
