from lang_plane.base import RepositoryLog

LANGCONFIG_COMPONENT = "langconfig"
LANGUAGE_NAME_STRINGID = "thislanguage"
ENGLISH = "en"

ComponentsTree = dict[int, dict[str, dict[str, bool]]]


class RepositoryQueries:
    """
    Read-only aggregate views of the repository log.

    Languages and components are memoized. Create one instance per process,
    share it and call invalidate() after commits that may change them.
    """

    def __init__(self, log: RepositoryLog) -> None:
        self.log = log
        self._languages: dict[str, str] | None = None
        self._components: list[str] | None = None

    def invalidate(self) -> None:
        self._languages = None
        self._components = None

    def list_languages(self, use_cache: bool = True) -> dict[str, str]:
        """
        Return known languages as code -> name.

        A language is known once it defines its own name. The name comes from
        the most recent branch and time.
        """
        if not use_cache or self._languages is None:
            languages: dict[str, str] = {}
            rows = self.log.rows_for_string(
                LANGCONFIG_COMPONENT, LANGUAGE_NAME_STRINGID
            )
            for row in rows:
                # the first row is the most recent, others are history
                if row.lang not in languages:
                    languages[row.lang] = row.text or ""
            self._languages = languages
        return dict(self._languages)

    def list_components(self, use_cache: bool = True) -> list[str]:
        """Return names of components that exist in English on some branch."""
        if not use_cache or self._components is None:
            self._components = self.log.component_names(ENGLISH)
        return list(self._components)

    def components_tree(
        self,
        branch: int | None = None,
        lang: str | None = None,
        component: str | None = None,
    ) -> ComponentsTree:
        """Return tree[branch][lang][component] = True of existing components."""
        tree: ComponentsTree = {}
        for row_branch, row_lang, row_component in self.log.branch_lang_components(
            branch, lang, component
        ):
            tree.setdefault(row_branch, {}).setdefault(row_lang, {})[
                row_component
            ] = True
        return tree
