from townmatch.services.geocoding_service import AddressResolver, get_address_resolver


def get_resolver() -> AddressResolver:
    return get_address_resolver()
