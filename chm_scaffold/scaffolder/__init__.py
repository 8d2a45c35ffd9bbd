"""CHM plugin scaffolder -- generates a buildable plugin crate.

Quick usage::

    from chm_scaffold.config import ScaffoldConfig
    from chm_scaffold.scaffolder import PluginScaffolder, PluginSpec

    scaffolder = PluginScaffolder(ScaffoldConfig.from_env())
    project_path = await scaffolder.scaffold(PluginSpec(name="my_plugin"))
"""

from chm_scaffold.scaffolder.generator import PluginScaffolder, PluginSpec
from chm_scaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "PluginScaffolder",
    "PluginSpec",
    "TemplateRenderer",
]
