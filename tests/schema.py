"""
Small graphene schema used across the test-suite.
"""

import asyncio

import graphene

# Counts how many ticker streams have been closed by the engine.
TICKER_STATE = {"started": 0, "closed": 0}


class Query(graphene.ObjectType):
    hello = graphene.String(name=graphene.String(default_value="world"))
    boom = graphene.String()
    whoami = graphene.String()

    def resolve_hello(root, info, name):
        return f"Hello {name}"

    def resolve_boom(root, info):
        raise ValueError("boom")

    def resolve_whoami(root, info):
        user = getattr(info.context, "user", None)
        return getattr(user, "username", None) or "anonymous"


class Echo(graphene.Mutation):
    class Arguments:
        message = graphene.String(required=True)

    message = graphene.String()

    def mutate(root, info, message):
        return Echo(message=message)


class Mutation(graphene.ObjectType):
    echo = Echo.Field()


class Subscription(graphene.ObjectType):
    count_to = graphene.Int(limit=graphene.Int(required=True))
    ticker = graphene.Int()
    failing = graphene.Int()

    async def subscribe_count_to(root, info, limit):
        for value in range(1, limit + 1):
            yield value

    async def subscribe_ticker(root, info):
        TICKER_STATE["started"] += 1
        value = 0
        try:
            while True:
                value += 1
                yield value
                await asyncio.sleep(0.02)
        finally:
            TICKER_STATE["closed"] += 1

    async def subscribe_failing(root, info):
        yield 1
        raise ValueError("stream failed")


schema = graphene.Schema(query=Query, mutation=Mutation, subscription=Subscription)
