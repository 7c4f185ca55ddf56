"""ontoflow - ontology-driven graph topology and layout engine."""

__version__ = "0.1.0"
