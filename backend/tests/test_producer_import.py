from auction_reports.services.producer_import import CSV_COLUMNS, import_producers_csv, normalize_province

CSV = """Province,Name,District,No_Bales,Micron,Price,Certified,Buyer_Name
Free State,Van Wyk Boerdery,Bethlehem,"1,200",18.5,215.50,rws,Standard Wool
EC,Smith Farming,Graaff-Reinet,12,19.0,205,,Tianyu Wool
freestate,Pienaar Trust,Ficksburg,8,19.2,201,RWS,
Mars,Nobody,,1,18,200,,
kzn,,Mooi River,3,20,190,,
Natal,Dlamini Wool,Estcourt,abc,20.1,188,,
"""


def test_normalize_province_accepts_aliases():
    assert normalize_province("Eastern Cape") == "Eastern Cape"
    assert normalize_province("eastern-cape") == "Eastern Cape"
    assert normalize_province("EC") == "Eastern Cape"
    assert normalize_province("Vrystaat") == "Free State"
    assert normalize_province(" KZN ") == "KwaZulu-Natal"
    assert normalize_province("north_west") == "North West"
    assert normalize_province("Atlantis") is None
    assert normalize_province("  ") is None
    assert normalize_province(None) is None


def test_csv_rows_are_grouped_by_province_in_order():
    result = import_producers_csv(CSV.encode("utf-8"))

    assert [g.province for g in result.groups] == ["Free State", "Eastern Cape"]
    free_state = result.groups[0].producers
    assert [(p.position, p.name) for p in free_state] == [(1, "Van Wyk Boerdery"), (2, "Pienaar Trust")]
    assert free_state[0].no_bales == 1200
    assert free_state[0].price == 215.5
    assert free_state[0].certified == "RWS"
    assert free_state[0].buyer_name == "Standard Wool"
    assert free_state[1].buyer_name is None

    assert result.groups[1].producers[0].certified == ""
    assert result.imported == 3


def test_bad_rows_are_reported_with_line_numbers():
    result = import_producers_csv(CSV)

    assert result.skipped == 3
    assert result.errors == [
        "Line 5: unknown province 'Mars'",
        "Line 6: producer name is required",
        "Line 7: no_bales 'abc' is not a number",
    ]


def test_header_is_required():
    assert import_producers_csv("").errors == ["CSV file is empty"]

    result = import_producers_csv("district,price\nX,1\n")
    assert result.errors == ["Missing required columns: province, name"]
    assert result.groups == []


def test_utf8_bom_is_stripped():
    result = import_producers_csv("\ufeffprovince,name\nLimpopo,Moloto Farms\n".encode("utf-8"))
    assert result.groups[0].province == "Limpopo"
    assert result.groups[0].producers[0].name == "Moloto Farms"


def test_all_columns_are_read():
    header = ",".join(CSV_COLUMNS)
    line = "Western Cape,Le Roux Farms,Beaufort West,LR-17,40,Fine merino,17.8,231.4,RWS,Modiano SA"
    producer = import_producers_csv(f"{header}\n{line}\n").groups[0].producers[0]

    assert producer.district == "Beaufort West"
    assert producer.producer_number == "LR-17"
    assert producer.no_bales == 40
    assert producer.description == "Fine merino"
    assert producer.micron == 17.8
    assert producer.price == 231.4
    assert producer.certified == "RWS"
    assert producer.buyer_name == "Modiano SA"
