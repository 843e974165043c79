"""Unit tests for the QueryAnalyzer (heuristic, deep and auto modes) and its rule tables."""

import json

import pytest

from techassist.application.services.query_analyzer import AnalysisMode, QueryAnalyzer
from techassist.application.services.query_rules import (
    ERROR_CODE_PATTERN,
    INTENT_RULES,
    KeywordRule,
)
from techassist.domain.entities import (
    ChatCompletionResult,
    EquipmentContext,
    QueryIntent,
    QueryScope,
    QueryUrgency,
    ResponseFormat,
    TokenUsage,
)
from techassist.domain.exceptions import ChatProviderError, PreconditionError
from techassist.domain.text_normalization import normalize_text


# ── Fakes ────────────────────────────────────────────────────────────


class FakeChatProvider:
    """Returns a fixed completion and records the calls."""

    def __init__(self, content: str):
        self._content = content
        self.calls: list[dict] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        return ChatCompletionResult(
            model=model,
            content=self._content,
            finish_reason="stop",
            usage=TokenUsage(total_tokens=120),
            provider="fake",
        )


class FailingChatProvider:
    """Provider whose HTTP call always fails."""

    def __init__(self):
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "failing"

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.calls += 1
        raise ChatProviderError("failing", 500, "upstream exploded")


def _deep_json(**overrides) -> str:
    payload = {
        "intent": "maintenance",
        "urgency": "planning",
        "scope": "equipment",
        "equipment_mentioned": ["Compresseur GA90"],
        "components_mentioned": ["filtre"],
        "error_codes": [],
        "symptoms": [],
        "search_document_types": ["manual"],
        "search_in_schematics": False,
        "search_in_dependencies": False,
        "response_format": "steps",
        "include_safety_warning": False,
        "include_parts_list": True,
        "confidence": 0.9,
        "reasoning": "Periodic filter replacement",
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def analyzer():
    return QueryAnalyzer()


@pytest.fixture
def equipment():
    return EquipmentContext(
        name="Compresseur GA90",
        level="equipment",
        category="compresseur",
        children=["Filtre à huile", "Moteur principal"],
        aliases=["le gros compresseur"],
    )


# ── Rule tables ──────────────────────────────────────────────────────


class TestKeywordRule:
    """The declarative tables are matched on normalized text at word starts."""

    def test_matches_normalized_phrase_and_returns_written_form(self):
        rule = KeywordRule("x", {"fr": ("ne démarre",)})

        assert rule.matches(normalize_text("Le moteur NE DEMARRE plus")) == ["ne démarre"]

    def test_matches_at_word_start_only(self):
        rule = KeywordRule("x", {"en": ("leak",)})

        assert rule.matches("leaking valve") == ["leak"]
        assert rule.matches("bleak outlook") == []

    @pytest.mark.parametrize("text", ["المحرك", "والمحرك", "بالمحرك", "للمحرك", "محرك"])
    def test_arabic_trigger_after_attached_article(self, text):
        rule = KeywordRule("x", {"ar": ("محرك",)})

        assert rule.matches(normalize_text(text)) == ["محرك"]

    @pytest.mark.parametrize("text", ["lpompe", "elpompe", "pompe"])
    def test_darija_trigger_after_latin_article(self, text):
        rule = KeywordRule("x", {"darija": ("pompe",)})

        assert rule.matches(text) == ["pompe"]

    def test_english_trigger_matches_whole_words_only(self):
        rule = KeywordRule("x", {"en": ("down", "plan")})

        assert rule.matches("the line is down") == ["down"]
        assert rule.matches("pumps shut downs") == ["down"]
        assert rule.matches("downstream of the plant") == []
        assert rule.matches("download the plans") == ["plan"]

    def test_every_intent_rule_covers_four_language_partitions(self):
        for rule in INTENT_RULES:
            assert len(rule.triggers) == 4, rule.label

    def test_error_code_pattern(self):
        found = [m.group(0) for m in ERROR_CODE_PATTERN.finditer("Codes E01, F-23 et ERR_104 affichés")]
        assert found == ["E01", "F-23", "ERR_104"]


# ── Heuristic mode ───────────────────────────────────────────────────


class TestHeuristicAnalysis:

    @pytest.mark.asyncio
    async def test_motor_does_not_start(self, analyzer):
        analysis = await analyzer.analyze("le moteur ne démarre pas")

        assert analysis.intent == QueryIntent.TROUBLESHOOTING
        assert analysis.urgency == QueryUrgency.EMERGENCY
        assert "moteur" in analysis.entities.components
        assert analysis.response_strategy.format == ResponseFormat.DIAGNOSTIC
        assert analysis.response_strategy.safety_warning is True
        assert analysis.search_strategy.dependencies is True
        assert analysis.search_strategy.schematics is True
        assert "ne démarre pas" in analysis.entities.symptoms
        assert analysis.mode == "heuristic"

    @pytest.mark.asyncio
    async def test_oil_filter_reference(self, analyzer):
        analysis = await analyzer.analyze("quelle est la référence du filtre à huile")

        assert analysis.intent == QueryIntent.PARTS
        assert analysis.response_strategy.format == ResponseFormat.TABLE
        assert analysis.response_strategy.parts_list is True
        assert "filtre" in analysis.entities.components
        assert analysis.urgency == QueryUrgency.INFORMATION

    @pytest.mark.asyncio
    async def test_arabic_maintenance_question(self, analyzer):
        analysis = await analyzer.analyze("شنوا صيانة ديال المحرك")

        assert analysis.intent == QueryIntent.MAINTENANCE
        assert analysis.response_strategy.format == ResponseFormat.STEPS
        assert analysis.response_strategy.parts_list is True
        assert analysis.entities.components == ("moteur",)

    @pytest.mark.asyncio
    async def test_darija_latin_breakdown(self, analyzer):
        analysis = await analyzer.analyze("lpompe ma khdamch mn lbareh")

        assert analysis.intent == QueryIntent.TROUBLESHOOTING
        assert analysis.urgency == QueryUrgency.EMERGENCY
        assert analysis.entities.components == ("pompe",)

    @pytest.mark.asyncio
    async def test_english_procedure(self, analyzer):
        analysis = await analyzer.analyze("how to replace the belt")

        assert analysis.intent == QueryIntent.PROCEDURE
        assert analysis.response_strategy.format == ResponseFormat.STEPS
        assert "courroie" in analysis.entities.components

    @pytest.mark.asyncio
    async def test_specs_use_list_format(self, analyzer):
        analysis = await analyzer.analyze("quelle est la puissance nominale")

        assert analysis.intent == QueryIntent.SPECS
        assert analysis.response_strategy.format == ResponseFormat.LIST

    @pytest.mark.asyncio
    async def test_planning_urgency(self, analyzer):
        analysis = await analyzer.analyze("planifier la vidange")

        assert analysis.urgency == QueryUrgency.PLANNING
        assert analysis.intent == QueryIntent.MAINTENANCE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [
        "le moteur ne fonctionne pas",
        "المحرك لا يعمل",
        "lmotor ma khdamch",
        "the motor is not working",
    ])
    async def test_same_breakdown_in_every_language(self, analyzer, query):
        analysis = await analyzer.analyze(query)

        assert analysis.intent == QueryIntent.TROUBLESHOOTING
        assert analysis.urgency == QueryUrgency.EMERGENCY
        assert analysis.entities.components == ("moteur",)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["عطب في المضخة", "the pump has a fault", "pompe en panne"])
    async def test_failure_nouns_raise_urgency(self, analyzer, query):
        analysis = await analyzer.analyze(query)

        assert analysis.urgency == QueryUrgency.EMERGENCY
        assert analysis.entities.components == ("pompe",)

    @pytest.mark.asyncio
    async def test_downstream_question_is_not_an_emergency(self, analyzer):
        analysis = await analyzer.analyze("which equipment is downstream of the pump")

        assert analysis.urgency == QueryUrgency.INFORMATION
        assert analysis.entities.components == ("pompe",)

    @pytest.mark.asyncio
    async def test_english_words_inside_longer_words_do_not_trigger(self, analyzer):
        analysis = await analyzer.analyze("in order to clean the plant floor")

        assert analysis.intent == QueryIntent.GENERAL
        assert analysis.urgency == QueryUrgency.INFORMATION

    @pytest.mark.asyncio
    async def test_no_keyword_is_general(self, analyzer):
        analysis = await analyzer.analyze("bonjour")

        assert analysis.intent == QueryIntent.GENERAL
        assert analysis.response_strategy.format == ResponseFormat.EXPLANATION
        assert analysis.confidence == 0.5
        assert analysis.search_strategy.schematics is False
        assert analysis.search_strategy.dependencies is False

    @pytest.mark.asyncio
    async def test_error_codes_are_uppercased_and_deduplicated(self, analyzer):
        analysis = await analyzer.analyze("alarme e01 puis E01 et F-23")

        assert analysis.entities.error_codes == ("E01", "F-23")

    @pytest.mark.asyncio
    async def test_equipment_context_drives_scope_and_mentions(self, analyzer, equipment):
        analysis = await analyzer.analyze("entretien du moteur principal", equipment)

        assert analysis.scope == QueryScope.EQUIPMENT
        assert "Moteur principal" in analysis.entities.equipment

    @pytest.mark.asyncio
    async def test_line_level_scope(self, analyzer):
        analysis = await analyzer.analyze("état de la ligne", EquipmentContext(name="Ligne 2", level="line"))

        assert analysis.scope == QueryScope.LINE
        assert analysis.targets_hierarchy

    @pytest.mark.asyncio
    async def test_unknown_level_scope(self, analyzer):
        analysis = await analyzer.analyze("état", EquipmentContext(name="X", level="zone"))

        assert analysis.scope == QueryScope.UNKNOWN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_is_a_precondition_violation(self, analyzer, query):
        with pytest.raises(PreconditionError):
            await analyzer.analyze(query)


# ── Deep mode ────────────────────────────────────────────────────────


class TestDeepAnalysis:

    @pytest.mark.asyncio
    async def test_valid_payload_is_used(self, equipment):
        provider = FakeChatProvider(_deep_json())
        analyzer = QueryAnalyzer(provider, model="test/model", mode="deep")

        analysis = await analyzer.analyze("vidange du compresseur", equipment)

        assert analysis.mode == "deep"
        assert analysis.intent == QueryIntent.MAINTENANCE
        assert analysis.urgency == QueryUrgency.PLANNING
        assert analysis.entities.components == ("filtre",)
        assert analysis.confidence == 0.9
        call = provider.calls[0]
        assert call["model"] == "test/model"
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 800
        prompt = call["messages"][0].content
        assert "Compresseur GA90" in prompt
        assert "Filtre à huile" in prompt
        assert "vidange du compresseur" in prompt

    @pytest.mark.asyncio
    async def test_fenced_payload_is_parsed(self):
        provider = FakeChatProvider("```json\n" + _deep_json() + "\n```")
        analysis = await QueryAnalyzer(provider, mode="deep").analyze("vidange")

        assert analysis.mode == "deep"

    @pytest.mark.asyncio
    async def test_payload_wrapped_in_prose_is_parsed(self):
        provider = FakeChatProvider("Voici l'analyse: " + _deep_json() + " Bonne journée.")
        analysis = await QueryAnalyzer(provider, mode="deep").analyze("vidange")

        assert analysis.intent == QueryIntent.MAINTENANCE

    @pytest.mark.asyncio
    async def test_intent_invariants_override_model_output(self):
        provider = FakeChatProvider(_deep_json(
            intent="troubleshooting",
            response_format="explanation",
            search_in_dependencies=False,
        ))
        analysis = await QueryAnalyzer(provider, mode="deep").analyze("panne")

        assert analysis.response_strategy.format == ResponseFormat.DIAGNOSTIC
        assert analysis.search_strategy.dependencies is True

    @pytest.mark.asyncio
    async def test_parts_invariants_override_model_output(self):
        provider = FakeChatProvider(_deep_json(
            intent="parts", response_format="list", include_parts_list=False
        ))
        analysis = await QueryAnalyzer(provider, mode="deep").analyze("référence")

        assert analysis.response_strategy.format == ResponseFormat.TABLE
        assert analysis.response_strategy.parts_list is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        "not json at all",
        _deep_json(intent="chitchat"),
        _deep_json(confidence=3),
        "[1, 2, 3]",
        "",
    ])
    async def test_invalid_response_falls_back_to_default(self, content):
        analyzer = QueryAnalyzer(FakeChatProvider(content), mode="deep")

        analysis = await analyzer.analyze("vidange")

        assert analysis.mode == "default"
        assert analysis.intent == QueryIntent.GENERAL
        assert analysis.urgency == QueryUrgency.INFORMATION
        assert analysis.scope == QueryScope.EQUIPMENT
        assert analysis.response_strategy.format == ResponseFormat.EXPLANATION
        assert analysis.confidence == 0.5
        assert analysis.entities.components == ()

    @pytest.mark.asyncio
    async def test_provider_error_falls_back_to_default(self):
        analysis = await QueryAnalyzer(FailingChatProvider(), mode="deep").analyze("vidange")

        assert analysis.mode == "default"

    @pytest.mark.asyncio
    async def test_missing_provider_falls_back_to_default(self):
        analysis = await QueryAnalyzer(None, mode="deep").analyze("vidange")

        assert analysis.mode == "default"


# ── Auto mode ────────────────────────────────────────────────────────


class TestAutoAnalysis:

    @pytest.mark.asyncio
    async def test_simple_question_stays_heuristic(self):
        provider = FakeChatProvider(_deep_json())
        analyzer = QueryAnalyzer(provider, mode=AnalysisMode.AUTO.value)

        analysis = await analyzer.analyze("quelle est la référence du filtre")

        assert analysis.mode == "heuristic"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_troubleshooting_escalates_to_deep(self):
        provider = FakeChatProvider(_deep_json(intent="troubleshooting", urgency="emergency"))
        analyzer = QueryAnalyzer(provider, mode="auto")

        analysis = await analyzer.analyze("le moteur ne démarre pas")

        assert analysis.mode == "deep"
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_long_question_escalates(self):
        provider = FakeChatProvider(_deep_json())
        analyzer = QueryAnalyzer(provider, mode="auto", deep_min_length=20)

        analysis = await analyzer.analyze("je voudrais savoir quelle huile utiliser en hiver")

        assert analysis.mode == "deep"

    @pytest.mark.asyncio
    async def test_failed_escalation_keeps_heuristic_result(self):
        provider = FailingChatProvider()
        analyzer = QueryAnalyzer(provider, mode="auto")

        analysis = await analyzer.analyze("le moteur ne démarre pas")

        assert provider.calls == 1
        assert analysis.mode == "heuristic"
        assert analysis.intent == QueryIntent.TROUBLESHOOTING

    @pytest.mark.asyncio
    async def test_per_call_mode_override(self):
        provider = FakeChatProvider(_deep_json())
        analyzer = QueryAnalyzer(provider, mode="heuristic")

        analysis = await analyzer.analyze("vidange", mode="deep")

        assert analysis.mode == "deep"
        assert analyzer.mode == AnalysisMode.HEURISTIC
