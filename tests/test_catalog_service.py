from stickershop.services.catalog_service import (
    CUTTING_OPTIONS,
    QUANTITY_LIMITS,
    SIZE_RANGE,
    STICKER_MATERIALS,
    catalog_to_dict,
    get_cutting_option,
    get_default_cutting,
    get_default_material,
    get_material,
    list_cutting_options,
    list_materials,
)


def test_material_lookup_by_id():
    material = get_material("holographic")
    assert material.id == "holographic"
    assert material.price_modifier == 1.3


def test_unknown_material_falls_back_to_first_entry():
    assert get_material("unobtainium") is STICKER_MATERIALS[0]
    assert get_material(None) is STICKER_MATERIALS[0]


def test_unknown_cutting_falls_back_to_first_entry():
    assert get_cutting_option("laser") is CUTTING_OPTIONS[0]


def test_defaults_are_recommended_entries():
    assert get_default_material().id == "premium-vinyl"
    assert get_default_cutting().id == "die-cut"
    assert get_default_cutting().price_cents == 15


def test_ids_are_unique():
    assert len({m.id for m in list_materials()}) == len(STICKER_MATERIALS)
    assert len({c.id for c in list_cutting_options()}) == len(CUTTING_OPTIONS)


def test_list_is_a_copy():
    materials = list_materials()
    materials.clear()
    assert len(list_materials()) == len(STICKER_MATERIALS)


def test_metallic_has_finish_options():
    finishes = [f.id for f in get_material("metallic").finish_options]
    assert finishes == ["metallic-gold", "metallic-silver"]


def test_catalog_document():
    doc = catalog_to_dict()
    assert doc["defaultMaterialId"] == "premium-vinyl"
    assert doc["defaultCuttingId"] == "die-cut"
    assert doc["sizeRange"] == dict(SIZE_RANGE)
    assert doc["quantityLimits"] == dict(QUANTITY_LIMITS)
    assert {c["id"] for c in doc["cuttingOptions"]} == {"die-cut", "kiss-cut", "rectangle", "circle"}
