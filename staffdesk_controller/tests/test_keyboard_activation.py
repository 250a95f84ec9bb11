from __future__ import annotations

from staffdesk_controller.controller import Document, Element, FormNavigationController, KeyboardActivator


def test_enter_and_space_activate_custom_control():
    control = Element("div", {"role": "button", "tabindex": "0"}, text="Open calendar")
    document = Document([control])
    activations: list[str] = []
    activator = KeyboardActivator(lambda: activations.append("open"))
    activator.attach(control)

    enter = document.press("Enter", target=control)
    space = document.press(" ", target=control)
    other = document.press("a", target=control)

    assert activations == ["open", "open"]
    assert enter.default_prevented is True
    assert space.default_prevented is True
    assert other.default_prevented is False


def test_detach_stops_activation():
    control = Element("div", {"role": "button"})
    document = Document([control])
    activations: list[str] = []
    activator = KeyboardActivator(lambda: activations.append("x"))
    activator.attach(control)
    activator.detach()

    document.press("Enter", target=control)

    assert activations == []
    assert control.listener_count() == 0


def test_activated_control_inside_form_is_not_navigated_away_from():
    field = Element("input")
    control = Element("div", {"role": "button", "tabindex": "0"})
    after = Element("input")
    document = Document([Element("form", children=[field, control, after])])
    navigation = FormNavigationController()
    navigation.mount(document)
    activations: list[str] = []
    KeyboardActivator(lambda: activations.append("x")).attach(control)

    control.focus()
    document.press("Enter")

    assert activations == ["x"]
    assert document.active_element is control
