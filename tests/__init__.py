"""Test suite for the formwidget state engine.

This package contains tests for:
- Schema model (field sets per step, defaults, mapping loader)
- Validation engine (rule order, messages, emptiness)
- Form state machine transitions (change, blur, next, previous, reset)
- Submission controller (sync, async, failing callbacks)
- Event stream (emission, serialization, listener isolation)
- Integration scenarios through FormRuntime and the view model
"""
