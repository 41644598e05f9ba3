from src.rules.models import Rules


class RedirectSourceRulesAdapter:
    """Adapter to map generic Rules to the redirect source RulesPort."""

    def __init__(self, rules: Rules):
        self._rules = rules.redirect_source

    def get_status_code(self) -> int:
        return self._rules.status_code

    def get_content_entity_kinds(self) -> list[str]:
        return self._rules.content_entity_kinds

    def get_canonical_schemes(self) -> list[str]:
        return self._rules.canonical_schemes

    def get_edit_form_path(self) -> str:
        return self._rules.edit_form_path

    def get_max_path_length(self) -> int:
        return self._rules.max_path_length

    def get_internal_path_pattern(self) -> str:
        return self._rules.internal_path_pattern
