# schooladmin/api/schema.py
"""
GraphQL SDL exported as a Python string named type_defs.
The application imports this module and expects type_defs to be available.
User never exposes its password hash; role stays an open Object on the wire.
Section.adviserId is null once the adviser has been deleted.
"""

type_defs = """
schema {
  query: Query
  mutation: Mutation
}

scalar Object
scalar Null

type User {
  id: String!
  firstName: String!
  lastName: String!
  middleInitial: String
  email: String!
  role: Object!
  createdAt: String
  createdBy: String
}

type Section {
  id: String!
  name: String
  adviserId: User
  createdAt: String
  createdBy: String
}

input UserInput {
  id: String
  firstName: String
  lastName: String
  middleInitial: String
  email: String
  password: String
  role: Object
}

type Query {
  me: User
  user(id: String!): User
  users(filter: UserInput): [User]
  sections: [Section]
}

type Mutation {
  addUser(id: String!, firstName: String!, lastName: String!, middleInitial: String, email: String!, password: String!, role: Object!): User
  addUsers(users: [UserInput!]!): [User]
  deleteUsers: Null
  addSection(id: String!, name: String, adviserId: String!, students: [UserInput!]!): Section
  login(email: String!, password: String!): User
  logout: Null
}
"""
