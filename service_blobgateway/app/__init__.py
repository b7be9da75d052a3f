"""
Blob Gateway application.

- app.main: ``BlobGatewayService`` and the ``create_app`` entrypoint.
- app.routing: endpoint map and wrapping order.
- app.auth: credential extraction, JWT verification and the access guard.
- app.transfer: upload/download handlers and error translation.
- app.storage: storage contract and the simple filesystem engine.
"""
