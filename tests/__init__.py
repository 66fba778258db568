"""The tests package for midiator.

The tests are written using the `pytest` framework and cover the style
resolver, the layout engine, both field renderers, the batch generator and
the command-line entry point.
"""
