"""Built-in CLI sub-commands for yardgen.

* :mod:`~yardgen.commands.run` -- document Ruby files (check, write or
  stdin mode).
* :mod:`~yardgen.commands.init` -- write a commented default
  ``yardgen.yml``.

Each module exports a plain callback function registered directly on the
root app in :func:`yardgen.app.main`.
"""
