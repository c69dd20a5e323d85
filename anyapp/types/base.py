from copy import deepcopy
from types import SimpleNamespace
from typing import Any, Dict
from marshmallow import INCLUDE, Schema, post_load

JSON = Dict[str, Any]
MAX_REPR_LEN = 80


def _class_defaults(cls: type) -> Dict[str, Any]:
    """Collect annotated class attributes that carry a default value."""
    defaults = {}
    for klass in reversed(cls.__mro__):
        for name in getattr(klass, "__annotations__", {}):
            if name.startswith("_"):
                continue
            if name in klass.__dict__:
                defaults[name] = klass.__dict__[name]
    return defaults


class BaseModel(SimpleNamespace):
    """BaseModel that all models should inherit from.
    Note:
        Annotated class attributes with a value act as defaults and are copied
        into the instance, so two models with the same content compare equal
        regardless of how they were built.
    Args:
        **kwargs: All passed parameters as converted to instance attributes.
    """

    def __init__(self, **kwargs: Any) -> None:
        for key, value in _class_defaults(type(self)).items():
            if key not in kwargs:
                kwargs[key] = deepcopy(value)
        self.__dict__.update(kwargs)

    def __repr__(self) -> str:
        """Return a default repr of any Model.
        Returns:
            The string model parameters up to a `MAX_REPR_LEN`.
        """
        repr_ = super().__repr__()
        if len(repr_) > MAX_REPR_LEN:
            return repr_[:MAX_REPR_LEN] + " ...)"
        else:
            return repr_


class BaseSchema(Schema):
    """The default schema for all models."""

    __model__: Any = BaseModel
    """Determine the object that is created when the load method is called."""

    class Meta:
        unknown = INCLUDE
        ordered = True

    @post_load
    def make_object(self, data: JSON, **kwargs: Any) -> "__model__":
        """Build model for the given `__model__` class attribute.
        Args:
            data: The JSON diction to use to build the model.
            **kwargs: Unused but required to match signature of `Schema.make_object`
        Returns:
            An instance of the `__model__` class.
        """
        return self.__model__(**data)
