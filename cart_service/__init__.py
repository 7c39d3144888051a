# Cart Service
