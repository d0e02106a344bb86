import logging
from dialogue.placeholders import LoreContext, find_placeholders, substitute

def test_substitutes_standard_tokens(lore):
    text = "Welcome to #TOWN_NAME, #PLAYER_NAME. I am #NPC_NAME."
    assert substitute(text, lore) == "Welcome to Millbrook, Ash. I am Mayor Holt."

def test_extra_bindings():
    lore = LoreContext(extra={"CULT_NAME": "the Ashen Eye"})
    assert substitute("Beware #CULT_NAME!", lore) == "Beware the Ashen Eye!"

def test_unresolved_token_left_verbatim_and_logged(lore, caplog):
    with caplog.at_level(logging.WARNING):
        result = substitute("Ask #QUEST_TARGET about it.", lore)

    assert result == "Ask #QUEST_TARGET about it."
    assert "#QUEST_TARGET" in caplog.text

def test_no_lore_leaves_text_alone():
    assert substitute("Hello #NPC_NAME", None) == "Hello #NPC_NAME"

def test_lowercase_and_bare_hash_are_not_tokens(lore):
    assert substitute("Item #3 and #town", lore) == "Item #3 and #town"

def test_find_placeholders():
    assert find_placeholders("#A and #B_2 but not #c") == ["A", "B_2"]

def test_known_tokens():
    tokens = LoreContext.known_tokens(("CULT_NAME",))
    assert "TOWN_NAME" in tokens
    assert "CULT_NAME" in tokens

def test_bindings_skip_empty_values():
    lore = LoreContext(npc_name="Greta")
    assert lore.bindings() == {"NPC_NAME": "Greta"}
    assert lore.resolve("TOWN_NAME") is None
