"""
Builder Module

Builds documentation artifacts from a parsed Swagger document:
- ExampleSynthesizer: annotated example bodies, cycle-safe
- EndpointAssembler: endpoint and controller records with permission codes
"""

from .example_synthesizer import ExampleSynthesizer
from .endpoint_assembler import (
    EndpointAssembler,
    EndpointDoc,
    ControllerDoc,
    ParameterDoc,
    ResponseDoc,
    resolve_body,
    iter_documented_operations,
)

__all__ = [
    "ExampleSynthesizer",
    "EndpointAssembler",
    "EndpointDoc",
    "ControllerDoc",
    "ParameterDoc",
    "ResponseDoc",
    "resolve_body",
    "iter_documented_operations",
]
