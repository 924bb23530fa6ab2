"""Wire a third-party loader into the lifecycle event.

``load_form`` stands in for a toolkit function that builds widgets from a UI
file. ``wire_loader`` fires ``did_instantiate`` for every widget it returns,
children first, reading each widget's tag with ``tag_of``.
"""

from __future__ import annotations

from collections.abc import Iterator

from scenewire import Container, ContainerRegistry, Injected, SceneInstantiatable, get_tag
from scenewire.integrations.loaders import wire_loader


class Translator:
    def translate(self, text: str) -> str:
        return {"Save": "Speichern", "Form": "Formular"}.get(text, text)


class Widget(SceneInstantiatable):
    translator: Injected[Translator]

    def __init__(self, text: str, object_name: str | None = None) -> None:
        self.text = text
        self.object_name = object_name
        self.children: list[Widget] = []


def walk(widget: Widget) -> Iterator[Widget]:
    for child in widget.children:
        yield from walk(child)
    yield widget


container = Container(autoregister_concrete_types=False)
container.add_instance(Translator())
container.add_concrete(Widget)
registry = ContainerRegistry([container])


@wire_loader(tag_of=lambda widget: widget.object_name, walk=walk, registry=registry)
def load_form() -> Widget:
    form = Widget("Form", object_name="form")
    form.children.append(Widget("Save", object_name="save_button"))
    return form


def main() -> None:
    form = load_form()
    button = form.children[0]

    print(form.translator.translate(form.text))  # => Formular
    print(button.translator.translate(button.text))  # => Speichern
    print(get_tag(button))  # => save_button


if __name__ == "__main__":
    main()
