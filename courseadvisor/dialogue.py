"""
Dialogue state machine.

`transition(context, event, cart, resolver)` is pure: it reads the cart, asks
the resolver, and returns the next Context plus a list of effects (what to
say, which cart mutation to apply, what to persist). `DialogueEngine` owns
the live Cart, FilterState and diagnostics and executes the effects in
order against its collaborators.

States:

    IDLE -> GREETING -> GUIDED_FILTER_INTRO -> FILTER_ASK_PERIOD
         -> FILTER_ASK_CREDITS -> FILTER_ASK_PROGRAMME -> MAIN_PLANNING
    GREETING --no--> WAITING --timeout--> IDLE
    MAIN_PLANNING <-> CONFIRM_ADD / OVERLOAD_WARNING / CONFIRM_REMOVE
    any finish/stop -> TERMINAL (cart persisted first)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional, Protocol, Union

from courseadvisor import config
from courseadvisor.cart import Cart
from courseadvisor.diagnostics import DialogueLog
from courseadvisor.intents import Event, Intent, is_any_option, parse_credits, parse_period
from courseadvisor.model import CourseRecord, FilterState, ScheduledCourse
from courseadvisor.resolver import CourseResolver
from courseadvisor.workload import would_overload

logger = logging.getLogger(__name__)


class State(Enum):
    IDLE = "idle"
    GREETING = "greeting"
    WAITING = "waiting"
    GUIDED_FILTER_INTRO = "guided_filter_intro"
    FILTER_ASK_PERIOD = "filter_ask_period"
    FILTER_ASK_CREDITS = "filter_ask_credits"
    FILTER_ASK_PROGRAMME = "filter_ask_programme"
    MAIN_PLANNING = "main_planning"
    CONFIRM_ADD = "confirm_add"
    OVERLOAD_WARNING = "overload_warning"
    CONFIRM_REMOVE = "confirm_remove"
    TERMINAL = "terminal"


FILTER_STEPS = {
    State.FILTER_ASK_PERIOD: "period",
    State.FILTER_ASK_CREDITS: "credits",
    State.FILTER_ASK_PROGRAMME: "programme",
}

# Only WAITING has a timer.
STATE_TIMEOUTS = {State.WAITING: config.WAITING_TIMEOUT_SECONDS}


class Gesture:
    OH = "Oh"
    SMILE = "Smile"
    BIG_SMILE = "BigSmile"
    NOD = "Nod"
    SHAKE = "Shake"
    BROW_FROWN = "BrowFrown"
    SURPRISE = "Surprise"


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Say:
    text: str


@dataclass(frozen=True)
class Ask:
    text: str


@dataclass(frozen=True)
class DoGesture:
    kind: str


@dataclass(frozen=True)
class Listen:
    pass


@dataclass(frozen=True)
class RecordTurn:
    text: str


@dataclass(frozen=True)
class RecordFailure:
    reason: str
    text: str = ""


@dataclass(frozen=True)
class AddToCart:
    record: CourseRecord
    period: str


@dataclass(frozen=True)
class RemoveFromCart:
    course: ScheduledCourse


@dataclass(frozen=True)
class ClearPeriod:
    period: str


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class UndoLast:
    pass


@dataclass(frozen=True)
class SetFilter:
    name: str
    value: str


@dataclass(frozen=True)
class ResetFilters:
    pass


@dataclass(frozen=True)
class PersistCart:
    pass


@dataclass(frozen=True)
class PersistFilters:
    pass


@dataclass(frozen=True)
class EndSession:
    pass


Effect = Union[
    Say, Ask, DoGesture, Listen, RecordTurn, RecordFailure, AddToCart, RemoveFromCart,
    ClearPeriod, ClearAll, UndoLast, SetFilter, ResetFilters, PersistCart, PersistFilters, EndSession,
]


@dataclass(frozen=True)
class Context:
    """
    Everything the machine remembers between turns besides the cart.

    prompt_round picks the planning prompt variant, so prompts rotate
    without randomness.
    """

    state: State = State.IDLE
    pending_add: Optional[CourseRecord] = None
    pending_remove: Optional[ScheduledCourse] = None
    prompt_round: int = 0


@dataclass
class Transition:
    context: Context
    effects: list = field(default_factory=list)

    @property
    def state(self) -> State:
        return self.context.state


# ---------------------------------------------------------------------------
# State entry
# ---------------------------------------------------------------------------

_EMPTY_PROMPTS = (
    "Tell me which course code or name you want to add.",
    "Which course should we add to your plan first?",
    "I'm ready. Please give me a course name or code.",
)

_FILLED_PROMPTS = (
    "You have {n} courses so far. What's next?",
    "That makes {n} courses in your plan. Do you want to add another?",
    "We have {n} items in the list. What course do you want to add next?",
)


def _enter(ctx: Context, state: State, cart: Cart, effects: list, size: Optional[int] = None) -> Transition:
    """
    Move to `state`, appending its entry effects.

    `size` is the cart size once the pending effects are applied, when a
    mutation is among them.
    """
    ctx = replace(ctx, state=state)

    if state is State.GREETING:
        effects.append(Ask("Hey, this is your course advisor. Should we start planning?"))

    elif state is State.WAITING:
        effects += [DoGesture(Gesture.SMILE), Listen()]

    elif state is State.GUIDED_FILTER_INTRO:
        effects += [ResetFilters(), PersistFilters(), PersistCart()]
        if len(cart):
            return _enter(ctx, State.MAIN_PLANNING, cart, effects)
        effects.append(
            Ask(
                "Welcome. To help you plan, you can use the filters on the left side of the screen, "
                "or should I help you filter the courses?"
            )
        )

    elif state is State.FILTER_ASK_PERIOD:
        effects.append(Ask("Which period? 1, 2, 3, or 4?"))

    elif state is State.FILTER_ASK_CREDITS:
        effects.append(Ask("How many credits? 7.5 or 6.0?"))

    elif state is State.FILTER_ASK_PROGRAMME:
        effects.append(Ask("Which programme track? Like Interactive Media Technology?"))

    elif state is State.MAIN_PLANNING:
        n = len(cart) if size is None else size
        prompts = _FILLED_PROMPTS if n else _EMPTY_PROMPTS
        effects += [Say(prompts[ctx.prompt_round % len(prompts)].format(n=n)), Listen()]
        ctx = replace(ctx, prompt_round=ctx.prompt_round + 1)

    elif state is State.CONFIRM_ADD:
        c = ctx.pending_add
        assert c is not None
        effects.append(
            Ask(f"I found {c.name}. It is {c.credits:g} credits and runs in {c.target_period}. Do you want to add it?")
        )

    elif state is State.OVERLOAD_WARNING:
        c = ctx.pending_add
        assert c is not None
        effects += [
            DoGesture(Gesture.OH),
            Ask(
                f"Wait, adding this course will exceed {config.OVERLOAD_THRESHOLD:g} credits in {c.target_period}. "
                "That is a heavy workload. Are you sure you want to add it?"
            ),
        ]

    elif state is State.CONFIRM_REMOVE:
        c = ctx.pending_remove
        assert c is not None
        effects.append(Ask(f"Are you sure you want to remove {c.name}?"))

    return Transition(ctx, effects)


def _stay(ctx: Context, effects: list) -> Transition:
    return Transition(ctx, effects)


def _finish(ctx: Context, effects: list, farewell: str) -> Transition:
    effects += [PersistCart(), DoGesture(Gesture.BIG_SMILE), Say(farewell), EndSession()]
    return Transition(replace(ctx, state=State.TERMINAL, pending_add=None, pending_remove=None), effects)


# ---------------------------------------------------------------------------
# Shared handlers
# ---------------------------------------------------------------------------


def _handle_add(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver, effects: list) -> Transition:
    """
    Resolve an add request and route it: overload warning or plain confirmation.
    Always ends up in MAIN_PLANNING or one of its confirmation states.
    """
    query = event.course or ""
    if not query:
        effects += [Say("Which course?"), Listen()]
        return Transition(replace(ctx, state=State.MAIN_PLANNING), effects)

    record = resolver.resolve(query)
    if record is None:
        effects += [
            DoGesture(Gesture.BROW_FROWN),
            Say(f"I heard {query}, but I couldn't verify the details."),
            Listen(),
        ]
        return Transition(replace(ctx, state=State.MAIN_PLANNING), effects)

    if cart.contains(record.code):
        effects += [DoGesture(Gesture.SURPRISE), Say(f"You already have {record.name}."), Listen()]
        return Transition(replace(ctx, state=State.MAIN_PLANNING), effects)

    ctx = replace(ctx, pending_add=record)
    if would_overload(cart.entries, record):
        return _enter(ctx, State.OVERLOAD_WARNING, cart, effects)
    return _enter(ctx, State.CONFIRM_ADD, cart, effects)


def _handle_remove(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver, effects: list) -> Transition:
    query = event.course or ""
    if not query:
        effects += [Say("Which course do you want to remove?"), Listen()]
        return _stay(ctx, effects)

    target = cart.find(query)
    if target is None:
        record = resolver.resolve(query)
        if record is not None:
            target = cart.get(record.code)

    if target is None:
        effects += [DoGesture(Gesture.SHAKE), Say(f"You don't have {query} in your schedule."), Listen()]
        return _stay(ctx, effects)

    return _enter(replace(ctx, pending_remove=target), State.CONFIRM_REMOVE, cart, effects)


# ---------------------------------------------------------------------------
# Per-state handlers
# ---------------------------------------------------------------------------

Handler = Callable[[Context, Event, Cart, CourseResolver], Transition]


def _on_idle(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    if event.intent is Intent.USER_ENTER:
        return _enter(ctx, State.GREETING, cart, [])
    return _stay(ctx, [])


def _on_greeting(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    intent = event.intent
    if intent in (Intent.YES, Intent.DONE):
        return _enter(ctx, State.GUIDED_FILTER_INTRO, cart, [DoGesture(Gesture.OH), Say("Ok! Let's go!")])
    if intent is Intent.START_PLANNING:
        return _enter(ctx, State.GUIDED_FILTER_INTRO, cart, [Say("Okay, let's look at your schedule.")])
    if intent is Intent.NO:
        return _enter(ctx, State.WAITING, cart, [Say("Ok. Let me know if you want to.")])
    if intent is Intent.USER_ENTER:
        return _stay(ctx, [])
    return _stay(
        ctx,
        [
            RecordFailure("Unrecognized Intent in Greeting", event.text),
            Ask("I don't understand. Are you ready to start planning?"),
        ],
    )


def _on_waiting(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    intent = event.intent
    if intent is Intent.TIMEOUT:
        return _enter(ctx, State.IDLE, cart, [Say("If now isn't a good time, we can always chat later.")])
    if intent in (Intent.DONE, Intent.YES):
        return _enter(ctx, State.GUIDED_FILTER_INTRO, cart, [DoGesture(Gesture.OH), Say("Alright, let's go!")])
    if intent is Intent.START_PLANNING:
        return _enter(ctx, State.GUIDED_FILTER_INTRO, cart, [Say("Okay, let's look at your schedule.")])
    return _stay(ctx, [Listen()])


def _on_guided_intro(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    intent = event.intent
    if intent is Intent.YES:
        return _enter(ctx, State.FILTER_ASK_PERIOD, cart, [Say("Nice! Let me help you filter the courses.")])
    if intent is Intent.NO:
        return _stay(
            ctx,
            [
                Say("Ok. First, you can select a specific period and credit for your course."),
                Ask("Select your track at the bottom of the filter, and tell me when you have selected your programme."),
            ],
        )
    if intent is Intent.DONE:
        return _enter(
            ctx,
            State.MAIN_PLANNING,
            cart,
            [RecordTurn(event.text), DoGesture(Gesture.SMILE), Say("Great! Now you should see the relevant courses.")],
        )
    if intent is Intent.ADD_COURSE:
        effects: list = [RecordTurn(event.text), Say("Ah, you found a course already!")]
        return _handle_add(ctx, event, cart, resolver, effects)
    if intent is Intent.FINISH:
        return _finish(ctx, [RecordTurn(event.text)], "Alright, your schedule is saved. Good luck with your studies!")
    if intent is Intent.NO_RESPONSE:
        return _stay(
            ctx,
            [
                RecordFailure("No Response in GuidedFilterIntro"),
                Ask("Are you still there? Please tell me when you have selected the filter."),
            ],
        )
    return _stay(
        ctx,
        [
            RecordFailure("Unrecognized Intent in GuidedFilterIntro", event.text),
            DoGesture(Gesture.BROW_FROWN),
            Ask("I didn't quite get that. Just let me know when you are 'done' selecting filters."),
        ],
    )


def _on_filter(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    """
    Shared logic of the three filter questions: slot value, "any", or free text.
    """
    step = FILTER_STEPS[ctx.state]
    next_state = {
        State.FILTER_ASK_PERIOD: State.FILTER_ASK_CREDITS,
        State.FILTER_ASK_CREDITS: State.FILTER_ASK_PROGRAMME,
        State.FILTER_ASK_PROGRAMME: State.MAIN_PLANNING,
    }[ctx.state]
    intent = event.intent

    if intent is Intent.FINISH:
        return _finish(ctx, [RecordTurn(event.text)], "Alright, your schedule is saved. Good luck with your studies!")

    if intent is Intent.ANY_OPTION or (intent is Intent.UNKNOWN and is_any_option(event.text)):
        done = {"period": "All periods.", "credits": "Any credits.", "programme": "Showing all programmes."}[step]
        return _enter(ctx, next_state, cart, [SetFilter(step, ""), PersistFilters(), Say(done)])

    value: Optional[str] = None
    if step == "period":
        value = event.period if intent is Intent.TELL_PERIOD else None
        if value is None and event.text:
            value = parse_period(event.text)
    elif step == "credits":
        value = event.credits if intent is Intent.TELL_CREDITS else None
        if value is None and event.text:
            value = parse_credits(event.text)
    else:
        value = event.programme if intent is Intent.TELL_PROGRAMME else None
        # programme has no closed vocabulary: any real text is taken as the name
        if value is None and len(event.text.strip()) > 2:
            value = event.text.strip()

    if value:
        effects: list = [SetFilter(step, value), PersistFilters()]
        if step == "programme":
            effects.append(Say(f"Filtering for {value}."))
        else:
            effects.append(DoGesture(Gesture.NOD))
        return _enter(ctx, next_state, cart, effects)

    retry = {
        "period": "Please say a number between 1 and 4.",
        "credits": "Please say 7.5, 6.0 or any.",
        "programme": "Please tell me the programme name again.",
    }[step]
    reason = "No Response" if intent is Intent.NO_RESPONSE else "Unrecognized"
    return _stay(ctx, [RecordFailure(f"{reason} while asking {step}", event.text), Ask(retry)])


def _on_main_planning(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    intent = event.intent

    if intent in (Intent.FINISH, Intent.NO):
        return _finish(ctx, [RecordTurn(event.text)], "Alright, your schedule is saved. Good luck with your studies! Bye!")

    if intent is Intent.ADD_COURSE:
        return _handle_add(ctx, event, cart, resolver, [RecordTurn(event.text)])

    if intent is Intent.REMOVE_COURSE:
        return _handle_remove(ctx, event, cart, resolver, [RecordTurn(event.text)])

    if intent is Intent.CLEAR_PERIOD:
        effects: list = [RecordTurn(event.text)]
        period = event.period
        if not period:
            effects += [Say("Which period should I clear?"), Listen()]
        elif cart.count_in_period(period):
            effects += [ClearPeriod(period), PersistCart(), Say(f"Cleared all courses from {period}."), Listen()]
        else:
            effects += [Say(f"{period} is already empty."), Listen()]
        return _stay(ctx, effects)

    if intent is Intent.CLEAR_ALL:
        effects = [RecordTurn(event.text)]
        if len(cart):
            effects += [ClearAll(), PersistCart(), DoGesture(Gesture.NOD), Say("I've cleared your entire schedule.")]
        else:
            effects.append(Say("Your schedule is already empty."))
        effects.append(Listen())
        return _stay(ctx, effects)

    if intent is Intent.UNDO:
        effects = [RecordTurn(event.text)]
        if cart.can_undo:
            effects += [UndoLast(), PersistCart(), DoGesture(Gesture.NOD), Say("Undone. I've reverted the last change.")]
        else:
            effects.append(Say("There is nothing to undo."))
        effects.append(Listen())
        return _stay(ctx, effects)

    if intent is Intent.CHECK_CART:
        if len(cart):
            summary = "You have: " + ", ".join(e.code for e in cart) + "."
        else:
            summary = "Your schedule is empty."
        return _stay(ctx, [RecordTurn(event.text), Say(summary), Listen()])

    if intent is Intent.NO_RESPONSE:
        return _stay(ctx, [RecordFailure("No Response"), Listen()])

    return _stay(
        ctx,
        [
            RecordFailure("Unrecognized Intent", event.text),
            DoGesture(Gesture.BROW_FROWN),
            Say("Sorry, I didn't catch that."),
            Listen(),
        ],
    )


def _on_confirm(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    """
    CONFIRM_ADD, OVERLOAD_WARNING and CONFIRM_REMOVE: yes commits, no or
    anything unrecognized drops the candidate, finish ends the session.
    """
    intent = event.intent
    cleared = replace(ctx, pending_add=None, pending_remove=None)
    removing = ctx.state is State.CONFIRM_REMOVE

    if intent is Intent.FINISH:
        return _finish(cleared, [RecordTurn(event.text)], "Okay, let's stop here. Bye!")

    if intent is Intent.YES:
        effects: list = [RecordTurn(event.text)]
        size = len(cart)
        if removing and ctx.pending_remove is not None:
            effects += [RemoveFromCart(ctx.pending_remove), PersistCart(), DoGesture(Gesture.NOD), Say("Okay, removed.")]
            size -= 1
        elif ctx.pending_add is not None:
            record = ctx.pending_add
            effects += [AddToCart(record, record.target_period), PersistCart(), DoGesture(Gesture.NOD)]
            if ctx.state is State.OVERLOAD_WARNING:
                effects.append(Say("Okay, I have added it to your schedule."))
            else:
                effects.append(Say("Okay, added."))
            size += 1
        return _enter(cleared, State.MAIN_PLANNING, cart, effects, size=size)

    if intent is Intent.NO:
        if removing:
            reply = "Okay, keeping it."
        elif ctx.state is State.OVERLOAD_WARNING:
            reply = "Wise choice. Let's find something else."
        else:
            reply = "Okay, cancelled."
        return _enter(cleared, State.MAIN_PLANNING, cart, [RecordTurn(event.text), DoGesture(Gesture.NOD), Say(reply)])

    return _enter(
        cleared,
        State.MAIN_PLANNING,
        cart,
        [RecordFailure("Unrecognized during Confirmation", event.text), Say("I'll take that as a no.")],
    )


def _on_terminal(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    return _stay(ctx, [])


HANDLERS: dict[State, Handler] = {
    State.IDLE: _on_idle,
    State.GREETING: _on_greeting,
    State.WAITING: _on_waiting,
    State.GUIDED_FILTER_INTRO: _on_guided_intro,
    State.FILTER_ASK_PERIOD: _on_filter,
    State.FILTER_ASK_CREDITS: _on_filter,
    State.FILTER_ASK_PROGRAMME: _on_filter,
    State.MAIN_PLANNING: _on_main_planning,
    State.CONFIRM_ADD: _on_confirm,
    State.OVERLOAD_WARNING: _on_confirm,
    State.CONFIRM_REMOVE: _on_confirm,
    State.TERMINAL: _on_terminal,
}


def transition(ctx: Context, event: Event, cart: Cart, resolver: CourseResolver) -> Transition:
    """
    Compute the next context and the effects of handling `event`. Reads the
    cart but never mutates it.
    """
    return HANDLERS[ctx.state](ctx, event, cart, resolver)


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------


class Conversation(Protocol):
    def ask(self, prompt: str) -> None: ...

    def say(self, prompt: str) -> None: ...

    def gesture(self, kind: str) -> None: ...

    def listen(self) -> None: ...


class StateSink(Protocol):
    def persist_cart(self, entries) -> bool: ...

    def persist_filters(self, filters: FilterState) -> bool: ...


class DialogueEngine:
    """
    Owns the session state and executes effects against the collaborators.

    One event is handled to completion before the next one is accepted.
    """

    def __init__(
        self,
        resolver: CourseResolver,
        conversation: Conversation,
        sink: StateSink,
        log: Optional[DialogueLog] = None,
        cart: Optional[Cart] = None,
        filters: Optional[FilterState] = None,
    ) -> None:
        self.resolver = resolver
        self.conversation = conversation
        self.sink = sink
        self.log = log if log is not None else DialogueLog()
        self.cart = cart if cart is not None else Cart()
        self.filters = filters if filters is not None else FilterState()
        self.context = Context()
        self.persist_failures = 0

    @property
    def state(self) -> State:
        return self.context.state

    @property
    def finished(self) -> bool:
        return self.context.state is State.TERMINAL

    @property
    def filter_step(self) -> Optional[str]:
        return FILTER_STEPS.get(self.context.state)

    def timeout(self) -> Optional[float]:
        """
        Seconds of silence after which a TIMEOUT event is due, if any.
        """
        return STATE_TIMEOUTS.get(self.context.state)

    def start(self) -> Transition:
        """
        A user showed up: open the log session and greet.
        """
        self.log.start_session()
        return self.handle(Event(Intent.USER_ENTER))

    def handle(self, event: Event) -> Transition:
        before = self.context.state
        result = transition(self.context, event, self.cart, self.resolver)
        self.context = result.context
        logger.debug("%s --%s--> %s", before.value, event.intent.value, result.state.value)
        for effect in result.effects:
            self._apply(effect)
        return result

    def _persist_cart(self) -> None:
        if not self.sink.persist_cart(self.cart.entries):
            self.persist_failures += 1

    def _persist_filters(self) -> None:
        if not self.sink.persist_filters(self.filters):
            self.persist_failures += 1

    def _apply(self, effect: Effect) -> None:
        io = self.conversation
        if isinstance(effect, Say):
            io.say(effect.text)
        elif isinstance(effect, Ask):
            io.ask(effect.text)
        elif isinstance(effect, DoGesture):
            io.gesture(effect.kind)
        elif isinstance(effect, Listen):
            io.listen()
        elif isinstance(effect, RecordTurn):
            self.log.record_turn(effect.text)
        elif isinstance(effect, RecordFailure):
            self.log.record_failure(effect.reason, effect.text)
        elif isinstance(effect, AddToCart):
            if not self.cart.add(effect.record, effect.period):
                logger.warning("Add skipped, %s already in cart", effect.record.code)
        elif isinstance(effect, RemoveFromCart):
            self.cart.remove(effect.course)
        elif isinstance(effect, ClearPeriod):
            removed = self.cart.clear_period(effect.period)
            logger.info("Cleared %d courses from %s", removed, effect.period)
        elif isinstance(effect, ClearAll):
            removed = self.cart.clear_all()
            logger.info("Cleared %d courses", removed)
        elif isinstance(effect, UndoLast):
            if not self.cart.undo():
                logger.info("Nothing to undo")
        elif isinstance(effect, SetFilter):
            setattr(self.filters, effect.name, effect.value)
        elif isinstance(effect, ResetFilters):
            self.filters.reset()
        elif isinstance(effect, PersistCart):
            self._persist_cart()
        elif isinstance(effect, PersistFilters):
            self._persist_filters()
        elif isinstance(effect, EndSession):
            logger.info("Session finished: %d turns, %d failures", self.log.turns, self.log.failures)
        else:
            raise TypeError(f"Unknown effect: {effect!r}")
