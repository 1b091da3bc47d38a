from pigeonrelay.traits import PIGEON_TRAIT_MEV, build_traits


class FakeMev:
    def __init__(self, healthy, registered):
        self.healthy = healthy
        self.registered = set(registered)
        self.asked = []

    def is_healthy(self):
        return self.healthy

    def is_chain_registered(self, chain_reference_id):
        self.asked.append(chain_reference_id)
        return chain_reference_id in self.registered


def test_no_client_gives_no_traits():
    assert build_traits("eth-main", None) == []


def test_unhealthy_client_gives_no_traits():
    client = FakeMev(healthy=False, registered=["eth-main"])
    assert build_traits("eth-main", client) == []
    assert client.asked == []


def test_unregistered_chain_gives_no_traits():
    client = FakeMev(healthy=True, registered=["bnb-main"])
    assert build_traits("eth-main", client) == []
    assert client.asked == ["eth-main"]


def test_healthy_registered_chain_gets_mev_trait():
    client = FakeMev(healthy=True, registered=["eth-main"])
    assert build_traits("eth-main", client) == [PIGEON_TRAIT_MEV]


def test_each_call_returns_a_fresh_list():
    client = FakeMev(healthy=True, registered=["eth-main"])
    first = build_traits("eth-main", client)
    first.append("extra")
    assert build_traits("eth-main", client) == [PIGEON_TRAIT_MEV]