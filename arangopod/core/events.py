"""Event bus used to fire pod lifecycle hooks.

Observers are registered per event name and notified in registration order.
Any observer can stop propagation by calling ``event.stop_propagation()``.

Observers are held through weak references: attaching an object does not
keep it alive, and it leaves every event once it is garbage collected.
"""

import logging
import weakref
from typing import Any, Dict, Iterable, List, Protocol, Union

from arangopod.exceptions import InvalidEventError

logger = logging.getLogger(__name__)


class Event:
    """A named event carrying the object it concerns."""

    def __init__(self, name: str, subject: Any) -> None:
        self.name = name
        self.subject = subject
        self.propagation_stopped = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def __repr__(self) -> str:
        return f"Event(name={self.name!r}, subject={self.subject!r})"


class Observer(Protocol):
    """Protocol for objects that can be attached to an Observable."""

    def on_event(self, event: Event) -> None:
        """Handle an event."""
        ...


class Observable:
    """Publish/subscribe registry keyed by event name."""

    def __init__(self) -> None:
        # event name -> {id(observer): observer}, in registration order
        self._observers: Dict[str, "weakref.WeakValueDictionary[int, Observer]"] = {}
        # same layout, for observers that only care about events about themselves
        self._subject_observers: Dict[str, "weakref.WeakValueDictionary[int, Observer]"] = {}

    def attach(self, events: Union[str, Iterable[str]], observer: Observer) -> None:
        """Register an observer for one or more events.

        Args:
            events: Event name or collection of event names
            observer: Object implementing ``on_event``

        Raises:
            InvalidEventError: If events is neither a string nor a collection
                of strings
        """
        for name in self._event_names(events):
            self._attach(self._observers, name, observer)

    def attach_subject(self, events: Union[str, Iterable[str]], observer: Observer) -> None:
        """Register an observer for the events whose subject is the observer itself.

        Such observers are looked up by subject when an event fires, so the
        cost of ``notify`` does not grow with their number. They are called
        before the observers registered with ``attach``.

        Raises:
            InvalidEventError: If events is neither a string nor a collection
                of strings
        """
        for name in self._event_names(events):
            self._attach(self._subject_observers, name, observer)

    @staticmethod
    def _event_names(events: Union[str, Iterable[str]]) -> List[str]:
        if isinstance(events, str):
            return [events]

        try:
            names = list(events)
        except TypeError:
            raise InvalidEventError(
                "Event can only be a string containing the name of the event "
                "or a collection of event names.",
                details={"events": repr(events)},
            ) from None

        if not all(isinstance(name, str) for name in names):
            raise InvalidEventError(
                "Event can only be a string containing the name of the event "
                "or a collection of event names.",
                details={"events": repr(events)},
            )
        return names

    @staticmethod
    def _attach(registry: Dict[str, Any], event: str, observer: Observer) -> None:
        observers = registry.setdefault(event, weakref.WeakValueDictionary())
        if id(observer) not in observers:
            observers[id(observer)] = observer

    def detach(self, event: str, observer: Observer) -> None:
        """Remove an observer from one event."""
        for registry in (self._observers, self._subject_observers):
            observers = registry.get(event)
            if observers is not None and observers.get(id(observer)) is observer:
                del observers[id(observer)]

    def detach_all_observers_for_event(self, event: str) -> None:
        """Remove every observer registered for an event."""
        self._observers.pop(event, None)
        self._subject_observers.pop(event, None)

    def detach_all_events_for_observer(self, observer: Observer) -> None:
        """Remove an observer from every event it is registered for."""
        for event in set(self._observers) | set(self._subject_observers):
            self.detach(event, observer)

    def get_observers(self, event: str) -> List[Observer]:
        result: List[Observer] = []
        for registry in (self._subject_observers, self._observers):
            observers = registry.get(event)
            if observers is not None:
                result.extend(observers.values())
        return result

    def notify(self, event: str, subject: Any) -> Event:
        """Notify the observers of an event.

        Args:
            event: Event name
            subject: Object the event concerns

        Returns:
            The dispatched Event
        """
        event_object = Event(event, subject)

        recipients: List[Observer] = []
        subject_observers = self._subject_observers.get(event)
        if subject_observers is not None:
            observer = subject_observers.get(id(subject))
            if observer is not None and observer is subject:
                recipients.append(observer)
        observers = self._observers.get(event)
        if observers is not None:
            recipients.extend(observers.values())

        for observer in recipients:
            if event_object.propagation_stopped:
                break
            observer.on_event(event_object)

        return event_object
