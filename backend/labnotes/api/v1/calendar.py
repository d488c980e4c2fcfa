"""
Calendar event endpoints and the calendar WebSocket.

Every create/update/delete is pushed to connected clients that can see the
event (creator, attendees, project members, administrators) after the
response has been sent.
"""
import json
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from ...core.errors import AuthenticationError, NotFoundError, ValidationError
from ...core.logging import get_logger
from ...core.permissions import Action, ResourceType
from ...db.storage import Storage
from ..deps import (
    access_context,
    authorize,
    get_broadcaster,
    get_current_user,
    get_storage,
    readable_project_ids,
    resolve_session,
)
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/calendar-events", tags=["Calendar"])
ws_router = APIRouter(tags=["Calendar"])


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _get_event_or_404(storage: Storage, event_id: int) -> models.CalendarEvent:
    event = storage.get_calendar_event(event_id)
    if event is None:
        raise NotFoundError("Calendar event")
    return event


def _event_context(storage: Storage, user: models.User, event: models.CalendarEvent):
    return access_context(
        storage,
        user,
        ResourceType.CALENDAR_EVENT,
        event.project,
        author_id=event.creator_id,
        attendee_ids=event.attendees or (),
    )


def _audience(storage: Storage, event: models.CalendarEvent) -> set[int]:
    """User ids allowed to see the event."""
    audience = {event.creator_id, *(event.attendees or [])}
    if event.project is not None:
        audience.add(event.project.owner_id)
        audience.update(c.user_id for c in storage.list_collaborators(event.project.id))
    return audience


def _check_project(storage: Storage, user: models.User, project_id: Optional[int]) -> None:
    """Linking an event to a project needs create rights on it."""
    if project_id is None:
        return
    project = storage.get_project(project_id)
    if project is None:
        raise ValidationError("Project does not exist")
    authorize(user, access_context(storage, user, ResourceType.CALENDAR_EVENT, project), Action.CREATE)


def _check_experiment(storage: Storage, project_id: Optional[int], experiment_id: Optional[int]) -> None:
    if experiment_id is None:
        return
    experiment = storage.get_experiment(experiment_id)
    if experiment is None or project_id is None or experiment.project_id != project_id:
        raise ValidationError("Experiment does not belong to the event's project")


def _check_attendees(storage: Storage, attendees: Optional[List[int]]) -> None:
    for attendee_id in attendees or []:
        if storage.get_user(attendee_id) is None:
            raise ValidationError(f"Attendee {attendee_id} does not exist")


def _publish(background_tasks: BackgroundTasks, broadcaster, storage: Storage, change: str, event) -> None:
    payload = schemas.CalendarEvent.model_validate(event).model_dump(mode="json")
    background_tasks.add_task(broadcaster.broadcast, change, payload, _audience(storage, event))


@router.get("", response_model=List[schemas.CalendarEvent])
def list_calendar_events(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    """Events overlapping the optional range that the caller can see"""
    start, end = _naive_utc(start_date), _naive_utc(end_date)
    if start is not None and end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")

    events = storage.list_calendar_events(start, end)
    project_ids = readable_project_ids(storage, current_user)
    if project_ids is None:
        return events
    return [
        e for e in events
        if e.creator_id == current_user.id
        or current_user.id in (e.attendees or [])
        or (e.project_id is not None and e.project_id in project_ids)
    ]


@router.post("", response_model=schemas.CalendarEvent, status_code=status.HTTP_201_CREATED)
def create_calendar_event(
    payload: schemas.CalendarEventCreate,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    broadcaster=Depends(get_broadcaster),
    current_user: models.User = Depends(get_current_user),
):
    _check_project(storage, current_user, payload.project_id)
    _check_experiment(storage, payload.project_id, payload.experiment_id)
    _check_attendees(storage, payload.attendees)

    data = payload.model_dump()
    data["attendees"] = list(dict.fromkeys(data["attendees"]))
    event = storage.create_calendar_event(creator_id=current_user.id, **data)
    logger.info(f"Calendar event created | id: {event.id} | user: {current_user.email}")
    _publish(background_tasks, broadcaster, storage, "created", event)
    return event


@router.get("/{event_id}", response_model=schemas.CalendarEvent)
def get_calendar_event(
    event_id: int,
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    event = _get_event_or_404(storage, event_id)
    authorize(current_user, _event_context(storage, current_user, event), Action.READ)
    return event


@router.put("/{event_id}", response_model=schemas.CalendarEvent)
def update_calendar_event(
    event_id: int,
    payload: schemas.CalendarEventUpdate,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    broadcaster=Depends(get_broadcaster),
    current_user: models.User = Depends(get_current_user),
):
    event = _get_event_or_404(storage, event_id)
    authorize(current_user, _event_context(storage, current_user, event), Action.UPDATE)

    data = payload.model_dump(exclude_unset=True)
    for key in ("title", "start_date", "end_date", "all_day", "recurrence", "color", "status"):
        if key in data and data[key] is None:
            data.pop(key)
    if "attendees" in data:
        data["attendees"] = list(dict.fromkeys(data["attendees"] or []))

    start = data.get("start_date", event.start_date)
    end = data.get("end_date", event.end_date)
    if end < start:
        raise ValidationError("end_date must not be before start_date")

    project_changed = "project_id" in data and data["project_id"] != event.project_id
    if project_changed:
        _check_project(storage, current_user, data["project_id"])
        data.setdefault("experiment_id", None)
    if data.get("experiment_id") is not None:
        _check_experiment(storage, data.get("project_id", event.project_id), data["experiment_id"])
    if "attendees" in data:
        _check_attendees(storage, data["attendees"])

    event = storage.update_calendar_event(event, **data)
    logger.info(f"Calendar event updated | id: {event.id} | fields: {sorted(data)} | user: {current_user.email}")
    _publish(background_tasks, broadcaster, storage, "updated", event)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_calendar_event(
    event_id: int,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    broadcaster=Depends(get_broadcaster),
    current_user: models.User = Depends(get_current_user),
):
    event = _get_event_or_404(storage, event_id)
    authorize(current_user, _event_context(storage, current_user, event), Action.DELETE)

    payload = schemas.CalendarEvent.model_validate(event).model_dump(mode="json")
    audience = _audience(storage, event)
    storage.delete_calendar_event(event)
    background_tasks.add_task(broadcaster.broadcast, "deleted", payload, audience)
    logger.info(f"Calendar event deleted | id: {event_id} | user: {current_user.email}")


def _authenticate_socket(app, token: Optional[str]) -> tuple[int, bool]:
    db = app.state.db.session()
    try:
        settings = app.state.settings
        storage = Storage(db, max_attempts=settings.DB_RETRY_ATTEMPTS, base_delay=settings.DB_RETRY_BASE_DELAY)
        auth = resolve_session(storage, settings, token)
        return auth.user.id, bool(auth.user.is_admin)
    finally:
        db.close()


@ws_router.websocket("/ws/calendar")
async def calendar_socket(websocket: WebSocket, token: Optional[str] = Query(default=None)):
    """
    Push channel for calendar changes.

    Authenticate with ?token=<access token>. The server answers "ping" (or
    {"type": "ping"}) with a pong; other client messages are ignored.
    """
    app = websocket.app
    try:
        user_id, is_admin = await run_in_threadpool(_authenticate_socket, app, token)
    except AuthenticationError as e:
        logger.warning(f"[WS] Calendar connection rejected: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    broadcaster = app.state.broadcaster
    await broadcaster.connect(websocket, user_id, is_admin)
    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_text("pong")
                continue
            try:
                data = json.loads(message)
            except ValueError:
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await broadcaster.disconnect(websocket)
