"""Domain models wrapping pods.

A model owns exactly one pod and exposes lifecycle hooks. Attribute access
that the model does not define is delegated to its pod, so ``model.get("x")``
and ``model.get_pod().get("x")`` are equivalent.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from arangopod.exceptions import ModelError

if TYPE_CHECKING:
    from .entities.document import Document


class Model:
    """Base class for user models.

    Override the hooks to run code at points of the pod lifecycle:

        class User(Model):
            def before_store(self):
                self.set("updated", time.time())
    """

    def __init__(self) -> None:
        self._pod: Optional["Document"] = None

    def load_pod(self, pod: "Document") -> None:
        """Attach the pod. Can only be done once."""
        if self._pod is not None:
            raise ModelError(
                "You cannot change the pod for this model as things can break "
                "and lead to unexpected results."
            )
        self._pod = pod

    def get_pod(self) -> "Document":
        return self._pod

    @property
    def pod(self) -> "Document":
        return self._pod

    def after_dispense(self) -> None:
        pass

    def after_open(self) -> None:
        pass

    def before_store(self) -> None:
        pass

    def after_store(self) -> None:
        pass

    def before_delete(self) -> None:
        pass

    def after_delete(self) -> None:
        pass

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails
        if name.startswith("__") or name == "_pod":
            raise AttributeError(name)
        pod = self.__dict__.get("_pod")
        if pod is None:
            raise AttributeError(
                f"{self.__class__.__name__} has no attribute '{name}' and no pod loaded"
            )
        return getattr(pod, name)

    def __repr__(self) -> str:
        pod = self.__dict__.get("_pod")
        pod_id = pod.get_id() if pod is not None else None
        return f"{self.__class__.__name__}(id={pod_id})"


class GenericModel(Model):
    """Model used when no custom model is mapped to a pod type."""


class ModelFormatter(ABC):
    """Strategy that maps a pod type to the model class to instantiate."""

    @abstractmethod
    def format_model(self, pod_type: str, is_graph: bool) -> Type[Any]:
        """Return the model class for a pod type."""


class DefaultModelFormatter(ModelFormatter):
    """Always returns GenericModel."""

    def format_model(self, pod_type: str, is_graph: bool) -> Type[Any]:
        return GenericModel


class MappedModelFormatter(ModelFormatter):
    """Maps pod types (case-insensitive) to model classes.

    Args:
        models: Mapping of pod type to model class
        fallback: Class returned for unmapped types
    """

    def __init__(
        self,
        models: Optional[Dict[str, Type[Any]]] = None,
        fallback: Type[Any] = GenericModel,
    ) -> None:
        self._models = {k.lower(): v for k, v in (models or {}).items()}
        self._fallback = fallback

    def register(self, pod_type: str, model: Type[Any]) -> None:
        self._models[pod_type.lower()] = model

    def format_model(self, pod_type: str, is_graph: bool) -> Type[Any]:
        return self._models.get(pod_type.lower(), self._fallback)
