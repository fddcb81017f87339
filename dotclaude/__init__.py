"""dotclaude -- scaffold a ``.claude/`` configuration tree into a project.

An interactive wizard collects project details, module choices and standards,
then bundled templates are copied into the target project and rendered with
the directive processor and the flat placeholder replacer.
"""

__version__ = "0.1.0"
