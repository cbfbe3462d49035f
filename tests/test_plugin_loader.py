import tempfile
import textwrap
import unittest
from pathlib import Path

from swarmsearch.sources.plugin_loader import PluginContext, SourcePluginLoader
from swarmsearch.sources.registry import SourceRegistry


class TestPluginLoader(unittest.TestCase):
    def test_load_register_function_plugin(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "my_plugin.py"
            p.write_text(textwrap.dedent("""
                from swarmsearch.sources.base import SourceDefinition, text_of

                def register(registry, context):
                    registry.register(SourceDefinition(
                        id="myplugin",
                        name="MyPluginSource",
                        search_url="https://plugin.example/search?q={query}&p={page}",
                        list_selector="tr.result",
                        result_builder=lambda row, url: {"title": text_of(row)},
                    ))
            """), encoding="utf-8")

            registry = SourceRegistry()
            loader = SourcePluginLoader([Path(td)])
            sources = loader.load(PluginContext(settings={}), registry)
            self.assertEqual(len(sources), 1)
            self.assertEqual(sources[0].name, "MyPluginSource")
            self.assertEqual(loader.last_errors, [])
            self.assertEqual(
                registry.get("myplugin").build_urls("abbey road", 2),
                ["https://plugin.example/search?q=abbey%20road&p=2"],
            )

    def test_load_definition_plugin_enabled(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "definition_plugin.py"
            p.write_text(textwrap.dedent("""
                from swarmsearch.sources.base import SourceDefinition

                EXAMPLE = SourceDefinition(
                    id="defplugin",
                    name="DefinitionPlugin",
                    search_url="https://plugin.example/?q={query}",
                    list_selector="tr",
                    result_builder=lambda row, url: None,
                    plugin_enabled=True,
                )

                DRAFT = SourceDefinition(
                    id="draft",
                    name="Draft",
                    search_url="https://draft.example/?q={query}",
                    list_selector="tr",
                    result_builder=lambda row, url: None,
                )
            """), encoding="utf-8")

            registry = SourceRegistry()
            loader = SourcePluginLoader([Path(td)])
            sources = loader.load(PluginContext(settings={}), registry)
            self.assertEqual(len(sources), 1)
            self.assertEqual(sources[0].name, "DefinitionPlugin")
            self.assertIsNone(registry.get("draft"))

    def test_invalid_plugin_reports_error(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "bad_plugin.py"
            p.write_text("x = 1\n", encoding="utf-8")
            loader = SourcePluginLoader([Path(td)])
            sources = loader.load(PluginContext(settings={}), SourceRegistry())
            self.assertEqual(sources, [])
            self.assertEqual(len(loader.last_errors), 1)
            self.assertIn("No register()", loader.last_errors[0])

    def test_private_files_and_missing_dirs_are_ignored(self):
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "_helpers.py").write_text("raise SystemExit('never imported')\n", encoding="utf-8")
            loader = SourcePluginLoader([Path(td), Path(td) / "missing"])
            self.assertEqual(loader.discover_files(), [])


if __name__ == "__main__":
    unittest.main()
