from lxml import etree

from dor_indexer.parse.flatten import element_text, field_name, flatten, flatten_document

MODS_NS = "http://www.loc.gov/mods/v3"


def _el(xml: str):
    return etree.fromstring(xml)


def test_doc_hash_has_entries_for_root_children_repeats_and_attributes():
    fields = flatten(
        _el(
            """<e a="a1">
                 <e1>v1</e1>
                 <e2>v2</e2>
                 <e2>v3</e2>
               </e>"""
        )
    )
    assert fields["e_sim"] == ["v1 v2 v3"]
    assert fields["e_a_sim"] == ["a1"]
    assert fields["e_e1_sim"] == ["v1"]
    assert fields["e_e2_sim"] == ["v2", "v3"]


def test_element_value_is_its_text():
    assert flatten(_el("<e>v</e>")) == {"e_sim": ["v"]}


def test_empty_and_whitespace_elements_produce_nothing():
    assert len(flatten(_el("<e></e>"))) == 0
    assert len(flatten(_el("<e/>"))) == 0
    assert len(flatten(_el("<e>     </e>"))) == 0


def test_entry_for_each_attribute():
    fields = flatten(_el('<e at1="a1" at2="a2">v1</e>'))
    assert fields["e_at1_sim"] == ["a1"]
    assert fields["e_at2_sim"] == ["a2"]


def test_xml_namespace_prefix_in_attribute_key():
    fields = flatten(_el('<e xml:lang="zurg">v1</e>'))
    assert fields["e_xml_lang_sim"] == ["zurg"]


def test_declared_namespace_prefixes_in_keys():
    fields = flatten(
        _el(
            '<r xmlns:mods="http://www.loc.gov/mods/v3" xmlns:xlink="http://www.w3.org/1999/xlink">'
            '<mods:title xlink:href="http://example.org/t">T</mods:title></r>'
        )
    )
    assert fields["r_mods_title_sim"] == ["T"]
    assert fields["r_mods_title_xlink_href_sim"] == ["http://example.org/t"]


def test_default_namespace_adds_no_prefix():
    fields = flatten(_el(f'<e xmlns="{MODS_NS}"><c>v</c></e>'))
    assert fields == {"e_sim": ["v"], "e_c_sim": ["v"]}


def test_empty_or_blank_attribute_produces_nothing():
    assert "e_at1_sim" not in flatten(_el('<e at1="">v1</e>'))
    assert "e_at1_sim" not in flatten(_el('<e at1="   ">v1</e>'))


def test_attribute_values_accumulate_across_repeated_children():
    fields = flatten(
        _el(
            """<e>
                 <e1>v1</e1>
                 <e2 at2="a2">v2</e2>
                 <e2 at2="a3">v3</e2>
               </e>"""
        )
    )
    assert fields["e_e2_at2_sim"] == ["a2", "a3"]


def test_suppression_applies_at_every_depth():
    fields = flatten(
        _el(
            """<e>
                 <a></a>
                 <b>   </b>
                 <c><d/><d>  </d></c>
                 <f x=" "><g>v</g></f>
                 <h y="1"/>
               </e>"""
        )
    )
    assert fields == {
        "e_sim": ["v"],
        "e_f_sim": ["v"],
        "e_f_g_sim": ["v"],
        "e_h_y_sim": ["1"],
    }


def test_mixed_content_and_comments():
    el = _el("<e>  one <b>two</b>three<!-- skipped --> four\n\n five </e>")
    assert element_text(el) == "one two three four five"


def test_repeated_flattening_is_identical():
    el = _el('<e a="1"><c>v1</c><c>v2</c><d xml:lang="en">x</d></e>')
    first = flatten(el)
    second = flatten(el)
    assert first == second
    assert first.to_dict() == second.to_dict()
    assert first["e_c_sim"] == ["v1", "v2"]
    assert first["e_sim"] == ["v1 v2 x"]


def test_flatten_document_drops_the_root_name():
    mods = _el(f"<mods xmlns='{MODS_NS}'><titleInfo><title>qervavdsaasdfa</title></titleInfo><note>n</note></mods>")
    fields = flatten_document(etree.ElementTree(mods))
    assert fields["titleInfo_sim"] == ["qervavdsaasdfa"]
    assert fields["titleInfo_title_sim"] == ["qervavdsaasdfa"]
    assert fields["note_sim"] == ["n"]
    assert not any(k.startswith("mods") for k in fields)


def test_field_name_joins_path_with_suffix():
    assert field_name(["e", "xml_lang"]) == "e_xml_lang_sim"
