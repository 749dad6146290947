"""GraphQL documents sent by frankie."""

LOGIN_MUTATION = """
mutation Login($email: String!, $password: String!) {
    login(email: $email, password: $password) {
        authToken
        refreshToken
        __typename
    }
    version
    __typename
}
"""

RENEW_TOKEN_MUTATION = """
mutation RenewToken($authToken: String!, $refreshToken: String!) {
    renewToken(authToken: $authToken, refreshToken: $refreshToken) {
        authToken
        refreshToken
    }
}
"""

ME_QUERY = """
query Me($siteReference: String) {
    me {
        id
        email
        countryCode
        advancedPaymentAmount(siteReference: $siteReference)
        treesCount
        hasCO2Compensation
        createdAt
        externalDetails {
            reference
            person {
                firstName
                lastName
            }
            address {
                addressFormatted
            }
        }
        smartCharging {
            isActivated
            provider
            isAvailableInCountry
        }
        smartTrading {
            isActivated
            isAvailableInCountry
        }
        reference
    }
}
"""

USER_SITES_QUERY = """
query UserSites {
    userSites {
        address {
            addressFormatted
        }
        addressHasMultipleSites
        deliveryEndDate
        deliveryStartDate
        firstMeterReadingDate
        lastMeterReadingDate
        propositionType
        reference
        segments
        status
    }
}
"""

VERSION_QUERY = """
query Version {
    version
}
"""

_PRICE_FIELDS = """
            from
            till
            resolution
            marketPrice
            marketPriceTax
            sourcingMarkupPrice
            energyTaxPrice
            marketPricePlus
            allInPrice
            perUnit
"""

_AVERAGE_FIELDS = """
            averageMarketPrice
            averageMarketPricePlus
            averageAllInPrice
            perUnit
            isWeighted
"""

MARKET_PRICES_QUERY = f"""
query MarketPrices($date: String!, $resolution: PriceResolution!) {{
    marketPrices(date: $date, resolution: $resolution) {{
        averageElectricityPrices {{{_AVERAGE_FIELDS}        }}
        electricityPrices {{{_PRICE_FIELDS}        }}
        gasPrices {{{_PRICE_FIELDS}        }}
    }}
}}
"""

# Belgian prices are selected with the x-country header and have no resolution.
BELGIUM_MARKET_PRICES_QUERY = f"""
query MarketPrices($date: String!) {{
    marketPrices(date: $date) {{
        electricityPrices {{{_PRICE_FIELDS}        }}
        gasPrices {{{_PRICE_FIELDS}        }}
    }}
}}
"""

_CUSTOMER_PRICE_FIELDS = """
            date
            from
            till
            resolution
            marketPrice
            marketPricePlus
            marketPriceTax
            sourcingMarkupPrice: consumptionSourcingMarkupPrice
            energyTaxPrice: energyTax
            allInPrice
            perUnit
"""

CUSTOMER_MARKET_PRICES_QUERY = f"""
query MarketPrices($date: String!, $siteReference: String!) {{
    customerMarketPrices(date: $date, siteReference: $siteReference) {{
        averageElectricityPrices {{{_AVERAGE_FIELDS}        }}
        electricityPrices {{{_CUSTOMER_PRICE_FIELDS}        }}
        gasPrices {{{_CUSTOMER_PRICE_FIELDS}        }}
    }}
}}
"""
