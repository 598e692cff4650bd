"""
Simple usage example for FactSage

This demonstrates teaching the agent a few facts and asking about them.
Run this after installation to see FactSage in action.
"""

from factsage import FactSageAgent, MemoryKnowledgeStore


def main():
    print("=" * 60)
    print("FactSage Simple Example")
    print("=" * 60)
    print()

    store = MemoryKnowledgeStore()
    agent = FactSageAgent(store)
    agent.seed()

    print("✓ Agent initialized with the arithmetic table and base knowledge!\n")
    print("=" * 60)

    for message in [
        "the capital of Brazil is Brasília",
        "capital of Brazil",
        "capital do Brasil",
        "5 + 3 = 8",
        "5 + 3 = 9",
        "7 + 2",
        "2 + 3 * 4",
        "HTML means HyperText Markup Language",
        "what is html",
        "explain the HTML document structure",
        "who discovered penicillin",
    ]:
        answer = agent.respond(message)
        print(f"\nYou      : {message}")
        print(f"FactSage : {answer.text}  [{answer.confidence:.0%}]")

    print("\n" + "=" * 60)
    print("\n💡 To run the full CLI: factsage  (or: python -m factsage)")
    print("=" * 60)


if __name__ == "__main__":
    main()
