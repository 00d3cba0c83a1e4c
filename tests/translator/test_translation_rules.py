"""Tests for litpress.translator rule matching and PHP output."""

from __future__ import annotations

from litpress.metadata import parse_component
from litpress.translator import EscapePolicy, Translator, translate
from litpress.translator.context import DROPPED_BINDING, HEURISTIC_ESCAPE, MANUAL_IMPLEMENTATION
from litpress.translator.escaping import infer_escape


def _translate(template: str, **escapes: str) -> str:
    return Translator().translate(template, escapes=escapes)


def test_interpolation_uses_declared_escape() -> None:
    assert _translate("<h1>${this.title}</h1>", title="html") == "<h1><?php echo esc_html($title); ?></h1>"


def test_attribute_interpolation_converts_camel_case() -> None:
    markup = _translate('<a href="${this.ctaUrl}">Go</a>', ctaUrl="url")

    assert markup == '<a href="<?php echo esc_url($cta_url); ?>">Go</a>'


def test_none_escape_is_marked_as_deliberate_raw_output() -> None:
    assert _translate("${this.body}", body="none") == "<?php echo /* escape:none */ $body; ?>"


def test_nested_property_access_becomes_array_subscript() -> None:
    markup = _translate("${this.author.name}", author="html")

    assert markup == "<?php echo esc_html($author['name']); ?>"


def test_nested_property_uses_root_parameter_escape() -> None:
    outcome = Translator().translate_unit(
        '<img alt="${this.author.name}">', policy=EscapePolicy(escapes={"author": "attr", "name": "html"})
    )

    assert outcome.markup == "<img alt=\"<?php echo esc_attr($author['name']); ?>\">"
    assert outcome.diagnostics == []


def test_string_case_helpers_are_translated() -> None:
    markup = _translate("${this.label.toUpperCase()}", label="html")

    assert markup == "<?php echo esc_html(mb_strtoupper($label)); ?>"


def test_map_loop_becomes_guarded_foreach_with_empty_message() -> None:
    markup = _translate("<ul>${this.items.map((item) => html`<li>${item.name}</li>`)}</ul>", name="html")

    assert markup == (
        "<ul><?php if (!empty($items)) : ?>\n"
        "<?php foreach ($items as $item) : ?><li><?php echo esc_html($item['name']); ?></li>"
        "<?php endforeach; ?>\n"
        "<?php else : ?>\n"
        "<p class=\"no-items\"><?php esc_html_e('No items available.', 'theme'); ?></p>\n"
        "<?php endif; ?></ul>"
    )


def test_map_loop_binds_index_variable() -> None:
    markup = _translate(
        '${this.steps.map((step, i) => html`<li data-step="${i}">${step.label}</li>`)}', label="html"
    )

    assert "<?php foreach ($steps as $i => $step) : ?>" in markup
    assert '<li data-step="<?php echo esc_html($i); ?>">' in markup
    assert "<?php echo esc_html($step['label']); ?>" in markup


def test_map_loop_uses_theme_text_domain() -> None:
    markup = Translator().translate(
        "${this.cards.map(card => html`<p>${card.title}</p>`)}", theme_name="acme", escapes={"title": "html"}
    )

    assert "esc_html_e('No cards available.', 'acme')" in markup


def test_ternary_without_else_branch() -> None:
    markup = _translate('${this.featured ? html`<span class="badge">Featured</span>` : \'\'}')

    assert markup == '<?php if ($featured) : ?><span class="badge">Featured</span><?php endif; ?>'


def test_ternary_with_two_templates() -> None:
    markup = _translate("${this.open ? html`<b>Open</b>` : html`<i>Closed</i>`}")

    assert markup == "<?php if ($open) : ?><b>Open</b><?php else : ?><i>Closed</i><?php endif; ?>"


def test_ternary_between_strings_is_escaped_echo() -> None:
    markup = _translate("${this.active ? 'On' : 'Off'}")

    assert markup == "<?php echo esc_html($active ? 'On' : 'Off'); ?>"


def test_ternary_condition_with_length_uses_count() -> None:
    markup = _translate("${this.items.length > 0 ? html`<p>Has items</p>` : ''}")

    assert markup == "<?php if (count($items) > 0) : ?><p>Has items</p><?php endif; ?>"


def test_image_conditional_resolves_attachment_ids() -> None:
    markup = Translator().translate(
        '${this.image ? html`<img src="${this.image}">` : \'\'}',
        {"image": "image"},
        escapes={"image": "url"},
    )

    assert markup.startswith("<?php if ($image) : ?><img src=\"<?php echo is_numeric($image)")
    assert "esc_url(wp_get_attachment_image_url((int) $image, 'full'))" in markup
    assert ": esc_url($image); ?>" in markup
    assert markup.endswith("<?php endif; ?>")


def test_map_loop_takes_precedence_over_nested_ternary() -> None:
    markup = _translate("${this.tasks.map((task) => html`<li>${task.done ? 'yes' : 'no'}</li>`)}")

    assert markup.startswith("<?php if (!empty($tasks)) : ?>")
    assert "<?php echo esc_html(!empty($task['done']) ? 'yes' : 'no'); ?>" in markup


def test_logical_default_becomes_short_ternary() -> None:
    markup = _translate("${this.label || 'Untitled'}", label="html")

    assert markup == "<?php echo esc_html(($label ?: 'Untitled')); ?>"


def test_literal_expression_is_inlined() -> None:
    assert _translate("<p>${'A & B'}</p>") == "<p>A &amp; B</p>"


def test_known_method_is_translated() -> None:
    assert _translate("&copy; ${this.getCurrentYear()}") == "&copy; <?php echo esc_html(date('Y')); ?>"


def test_custom_method_handler_can_be_registered() -> None:
    translator = Translator(methods={"formatPrice": lambda args, context: f"<?php echo esc_html({args[0]}); ?>"})

    markup = translator.translate("${this.formatPrice(this.price)}")

    assert markup == "<?php echo esc_html($price); ?>"


def test_unknown_method_emits_manual_marker_and_diagnostic() -> None:
    outcome = Translator().translate_unit("${this.formatDate(this.date)}", policy=EscapePolicy())

    assert outcome.markup == "<?php /* MANUAL IMPLEMENTATION REQUIRED: formatDate(date) */ ?>"
    assert [diagnostic.kind for diagnostic in outcome.diagnostics] == [MANUAL_IMPLEMENTATION]


def test_unterminated_template_is_flagged_for_manual_work() -> None:
    outcome = Translator().translate_unit("<p>${this.title</p>", policy=EscapePolicy())

    assert "MANUAL IMPLEMENTATION REQUIRED" in outcome.markup
    assert outcome.diagnostics[0].kind == MANUAL_IMPLEMENTATION


def test_event_binding_is_dropped_and_reported() -> None:
    outcome = Translator().translate_unit(
        '<button @click="${this.toggle}">Menu</button>', policy=EscapePolicy()
    )

    assert outcome.markup == "<button>Menu</button>"
    assert outcome.diagnostics[0].kind == DROPPED_BINDING
    assert outcome.diagnostics[0].expression == "@click"


def test_boolean_attribute_binding_becomes_conditional_attribute() -> None:
    markup = _translate('<input type="checkbox" ?checked=${this.done}>')

    assert markup == '<input type="checkbox"<?php if ($done) : ?> checked<?php endif; ?>>'


def test_missing_escape_falls_back_to_heuristic_and_is_reported() -> None:
    outcome = Translator().translate_unit(
        '<a href="${this.linkUrl}">${this.caption}</a>', policy=EscapePolicy()
    )

    assert "esc_url($link_url)" in outcome.markup
    assert "esc_html($caption)" in outcome.markup
    assert outcome.heuristic is True
    assert {diagnostic.kind for diagnostic in outcome.diagnostics} == {HEURISTIC_ESCAPE}
    assert len(outcome.diagnostics) == 2


def test_array_field_escape_overrides_parameter_escape() -> None:
    policy = EscapePolicy(
        escapes={"title": "html"},
        array_escapes={"links": {"title": "attr"}},
    )

    outcome = Translator().translate_unit(
        '${this.links.map((link) => html`<a title="${link.title}">${this.title}</a>`)}', policy=policy
    )

    assert "esc_attr($link['title'])" in outcome.markup
    assert "esc_html($title)" in outcome.markup
    assert outcome.diagnostics == []


def test_infer_escape_from_field_names() -> None:
    assert infer_escape("imageSrc") == "url"
    assert infer_escape("permalink") == "url"
    assert infer_escape("altText") == "attr"
    assert infer_escape("body") == "html"


def test_module_level_translate_uses_default_rules() -> None:
    assert translate("${this.name}") == "<?php echo esc_html($name); ?>"


def test_metadata_policy_keeps_array_field_escapes_in_their_loop() -> None:
    metadata = parse_component(
        "gallery",
        {
            "type": "aggregated",
            "parameters": [{"name": "images", "type": "array", "escape": "html"}],
            "arrayFields": {
                "images": [
                    {"name": "src", "fieldType": "image", "escape": "url"},
                    {"name": "alt", "escape": "attr"},
                ]
            },
        },
    )
    template = (
        '${this.images.map((image) => html`<img alt="${image.alt}" title="${image.caption}">`)}'
        "<p>${this.alt}</p>"
    )

    outcome = Translator().translate_unit(template, policy=EscapePolicy.from_metadata(metadata))

    assert "esc_attr($image['alt'])" in outcome.markup
    assert [(diagnostic.kind, diagnostic.expression) for diagnostic in outcome.diagnostics] == [
        (HEURISTIC_ESCAPE, "image.caption"),
        (HEURISTIC_ESCAPE, "this.alt"),
    ]
