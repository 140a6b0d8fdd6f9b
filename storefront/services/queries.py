"""GraphQL documents sent to Saleor"""

LIST_STORES = """
query StoreCollections($channel: String!, $first: Int!) {
  collections(first: $first, channel: $channel) {
    edges {
      node {
        id
        slug
        name
        description
        seoDescription
        backgroundImage(size: 900) {
          url
          alt
        }
      }
    }
  }
}
"""

LIST_STORE_CATALOG = """
query CollectionProducts($id: ID!, $channel: String!, $first: Int!, $variants: Int!) {
  collection(id: $id, channel: $channel) {
    id
    name
    description
    products(first: $first, channel: $channel) {
      edges {
        node {
          id
          name
          slug
          description
          category {
            id
            name
          }
          thumbnail(size: 512) {
            url
            alt
          }
          pricing {
            priceRange {
              start {
                gross {
                  amount
                  currency
                }
              }
            }
          }
          variants(first: $variants) {
            id
            name
            sku
            quantityAvailable
            pricing {
              price {
                gross {
                  amount
                  currency
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

CREATE_ORDER_DRAFT = """
mutation CheckoutCreate($input: CheckoutCreateInput!) {
  checkoutCreate(input: $input) {
    checkout {
      id
      webUrl
    }
    errors {
      field
      message
      code
    }
  }
}
"""
